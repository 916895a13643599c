"""Move definition model."""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from skillbattle.mechanics.combat.exceptions import InvalidInputError
from .damage_spec import DamageSpec, HealingSpec, parse_damage_spec, _require_int
from .enums import MoveCategory
from .status_effect import MAGNITUDE_FIELDS, StatusEffectTemplate

# Magnitudes that are percentages
PERCENT_FIELDS = ("success_chance", "chance", "damage_reduction")


def _validate_template(template: StatusEffectTemplate, path: str) -> None:
    # Unrecognized types are skipped with a warning at resolution time
    if template.known_type is None:
        return
    for name in ("duration", "success_chance") + MAGNITUDE_FIELDS:
        raw = getattr(template, name)
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise InvalidInputError(f"{path}.{name} must be a number, got {raw!r}", field="status_effects")
        value = int(raw)
        if value < 0:
            raise InvalidInputError(f"{path}.{name} cannot be negative", field="status_effects")
        if name in PERCENT_FIELDS and value > 100:
            raise InvalidInputError(f"{path}.{name} must be at most 100", field="status_effects")


@dataclass(frozen=True)
class MoveDefinition:
    """Effective parameters of a move at resolution time."""
    move_id: str
    name: str
    category: MoveCategory
    damage: Optional[DamageSpec] = None
    healing: Optional[HealingSpec] = None
    pp_steal: int = 0
    status_effects: List[StatusEffectTemplate] = field(default_factory=list)
    mastery: int = 1
    level: int = 1
    pp_cost: int = 0
    shield_boost: int = 0
    cooldown: int = 0
    priority: int = 0
    description: str = ""

    def validate(self) -> None:
        """Check the numeric fields the resolver depends on.

        Raises:
            InvalidInputError: On the first malformed field
        """
        if not self.move_id or not self.name:
            raise InvalidInputError("Move needs an id and a name", field="move_id")
        if not isinstance(self.category, MoveCategory):
            raise InvalidInputError(f"Unknown move category {self.category!r}", field="category")
        for name in ("pp_steal", "mastery", "level", "pp_cost", "shield_boost", "cooldown"):
            value = _require_int(getattr(self, name), name)
            if value < 0:
                raise InvalidInputError(f"{name} cannot be negative", field=name)
        if self.mastery < 1 or self.level < 1:
            raise InvalidInputError("mastery and level start at 1", field="mastery")
        _require_int(self.priority, "priority")
        if self.damage is not None:
            parse_damage_spec(self.damage)
        if self.healing is not None:
            parse_damage_spec(self.healing.to_dict(), field="healing")
        for index, template in enumerate(self.status_effects):
            _validate_template(template, f"status_effects[{index}]")

    def with_mastery(self, mastery: int) -> "MoveDefinition":
        return replace(self, mastery=mastery)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.move_id,
            "name": self.name,
            "category": self.category.value,
            "damage": self.damage.to_dict() if self.damage is not None else None,
            "healing": self.healing.to_dict() if self.healing is not None else None,
            "pp_steal": self.pp_steal,
            "status_effects": [t.to_dict() for t in self.status_effects],
            "mastery": self.mastery,
            "level": self.level,
            "pp_cost": self.pp_cost,
            "shield_boost": self.shield_boost,
            "cooldown": self.cooldown,
            "priority": self.priority,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MoveDefinition":
        """Create a MoveDefinition from a dictionary.

        Raises:
            InvalidInputError: If required fields are missing or malformed
        """
        for required in ("id", "name", "category"):
            if not data.get(required):
                raise InvalidInputError(f"Move is missing '{required}'", field=required)
        try:
            category = MoveCategory(data["category"])
        except ValueError:
            raise InvalidInputError(f"Unknown move category {data['category']!r}", field="category")

        templates = []
        for effect_data in data.get("status_effects", []):
            try:
                templates.append(StatusEffectTemplate.from_dict(effect_data))
            except (TypeError, ValueError) as e:
                raise InvalidInputError(f"Malformed status effect on {data['name']}: {e}", field="status_effects")

        move = cls(
            move_id=data["id"],
            name=data["name"],
            category=category,
            damage=parse_damage_spec(data.get("damage")),
            healing=HealingSpec.parse(data.get("healing")),
            pp_steal=data.get("pp_steal", 0),
            status_effects=templates,
            mastery=data.get("mastery", 1),
            level=data.get("level", 1),
            pp_cost=data.get("pp_cost", 0),
            shield_boost=data.get("shield_boost", 0),
            cooldown=data.get("cooldown", 0),
            priority=data.get("priority", 0),
            description=data.get("description", ""),
        )
        move.validate()
        return move
