"""Combatant state model for tracking one side of a battle."""
from dataclasses import dataclass, field
from typing import List, Dict, Any

from skillbattle.mechanics.combat.exceptions import InvalidInputError
from skillbattle.models.combat.mechanics.enums import StatusEffectType
from skillbattle.models.combat.mechanics.skill_action import CombatantDelta
from skillbattle.models.combat.mechanics.status_effect import StatusEffectInstance

POOL_FIELDS = (
    ("health", "max_health"),
    ("shield", "max_shield"),
    ("power_points", "max_power_points"),
)


def clamp(value: int, maximum: int) -> int:
    """Clamp value into [0, maximum]."""
    return max(0, min(value, maximum))


@dataclass
class CombatantState:
    """State of a single combatant.

    Health, shield and power points are clamped into ``[0, max]`` on creation
    and after every mutation.
    """
    combatant_id: str
    name: str
    level: int
    health: int
    max_health: int
    shield: int = 0
    max_shield: int = 0
    power_points: int = 0
    max_power_points: int = 0
    is_cpu: bool = False
    artifacts: List[str] = field(default_factory=list)
    move_ids: List[str] = field(default_factory=list)
    status_effects: List[StatusEffectInstance] = field(default_factory=list)

    def __post_init__(self):
        self.validate()
        self.clamp_pools()

    def validate(self) -> None:
        """Raise InvalidInputError when identity or a numeric field is malformed."""
        if not self.combatant_id:
            raise InvalidInputError("Combatant needs an id", field="combatant_id")
        for name in ("level",) + tuple(f for pair in POOL_FIELDS for f in pair):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidInputError(
                    f"{self.name or self.combatant_id}: {name} must be an integer, got {value!r}",
                    field=name,
                )
        for _, max_name in POOL_FIELDS:
            if getattr(self, max_name) < 0:
                raise InvalidInputError(f"{max_name} cannot be negative", field=max_name)

    def clamp_pools(self) -> None:
        for name, max_name in POOL_FIELDS:
            setattr(self, name, clamp(getattr(self, name), getattr(self, max_name)))

    @property
    def is_defeated(self) -> bool:
        return self.health <= 0

    def has_effect(self, effect_type: StatusEffectType) -> bool:
        return any(e.effect_type == effect_type and e.is_active for e in self.status_effects)

    def effects_of(self, effect_type: StatusEffectType) -> List[StatusEffectInstance]:
        return [e for e in self.status_effects if e.effect_type == effect_type and e.is_active]

    def apply_damage(self, damage: int) -> Dict[str, int]:
        """Apply damage to shield first, spilling the remainder to health."""
        result = {"shield_absorbed": 0, "health_damage": 0}
        if damage <= 0:
            return result

        absorbed = min(self.shield, damage)
        self.shield -= absorbed
        remaining = damage - absorbed

        lost = min(self.health, remaining)
        self.health -= lost
        result["shield_absorbed"] = absorbed
        result["health_damage"] = lost
        return result

    def lose_health(self, amount: int) -> int:
        """Reduce health directly, bypassing shield. Return actual loss."""
        lost = min(self.health, max(0, amount))
        self.health -= lost
        return lost

    def heal(self, amount: int) -> int:
        """Heal the combatant, return actual amount healed."""
        old_health = self.health
        self.health = clamp(self.health + max(0, amount), self.max_health)
        return self.health - old_health

    def boost_shield(self, amount: int) -> int:
        """Raise shield up to its max, return actual gain."""
        old_shield = self.shield
        self.shield = clamp(self.shield + max(0, amount), self.max_shield)
        return self.shield - old_shield

    def spend_power_points(self, amount: int) -> int:
        """Remove up to ``amount`` power points, return how many were removed."""
        spent = min(self.power_points, max(0, amount))
        self.power_points -= spent
        return spent

    def gain_power_points(self, amount: int) -> int:
        old_pp = self.power_points
        self.power_points = clamp(self.power_points + max(0, amount), self.max_power_points)
        return self.power_points - old_pp

    def delta_from(self, before: "CombatantState") -> CombatantDelta:
        """Return the pool changes between ``before`` and this state."""
        return CombatantDelta(
            health=self.health - before.health,
            shield=self.shield - before.shield,
            power_points=self.power_points - before.power_points,
        )

    def apply_delta(self, delta: CombatantDelta, effects: List[StatusEffectInstance]) -> None:
        """Apply a resolved delta and replace the effect list."""
        self.health += delta.health
        self.shield += delta.shield
        self.power_points += delta.power_points
        self.clamp_pools()
        self.status_effects = [e.copy() for e in effects]

    def copy(self) -> "CombatantState":
        """Return an independent copy, effect instances included."""
        return CombatantState(
            combatant_id=self.combatant_id,
            name=self.name,
            level=self.level,
            health=self.health,
            max_health=self.max_health,
            shield=self.shield,
            max_shield=self.max_shield,
            power_points=self.power_points,
            max_power_points=self.max_power_points,
            is_cpu=self.is_cpu,
            artifacts=list(self.artifacts),
            move_ids=list(self.move_ids),
            status_effects=[e.copy() for e in self.status_effects],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "combatant_id": self.combatant_id,
            "name": self.name,
            "level": self.level,
            "health": self.health,
            "max_health": self.max_health,
            "shield": self.shield,
            "max_shield": self.max_shield,
            "power_points": self.power_points,
            "max_power_points": self.max_power_points,
            "is_cpu": self.is_cpu,
            "artifacts": list(self.artifacts),
            "move_ids": list(self.move_ids),
            "status_effects": [e.to_dict() for e in self.status_effects],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CombatantState':
        """Create CombatantState from dictionary representation.

        Args:
            data: Dictionary containing combatant data

        Returns:
            Deserialized CombatantState

        Raises:
            InvalidInputError: If a required field is missing or malformed
        """
        for required in ("combatant_id", "health", "max_health"):
            if data.get(required) is None:
                raise InvalidInputError(f"Combatant is missing '{required}'", field=required)

        combatant = cls(
            combatant_id=data["combatant_id"],
            name=data.get("name", data["combatant_id"]),
            level=data.get("level", 1),
            health=data["health"],
            max_health=data["max_health"],
            shield=data.get("shield", 0),
            max_shield=data.get("max_shield", 0),
            power_points=data.get("power_points", 0),
            max_power_points=data.get("max_power_points", 0),
            is_cpu=data.get("is_cpu", False),
            artifacts=list(data.get("artifacts", [])),
            move_ids=list(data.get("move_ids", [])),
        )

        # Deserialize status effects
        for effect_data in data.get("status_effects", []):
            effect = StatusEffectInstance.from_dict(effect_data)
            if effect:
                combatant.status_effects.append(effect)

        return combatant
