"""Status effect templates and live instances."""
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Any, Optional

from .enums import StatusEffectType, EffectTarget

logger = logging.getLogger(__name__)

# Effects removed by a cleanse. REDUCE is mitigation and survives a cleanse.
NEGATIVE_EFFECTS = frozenset({
    StatusEffectType.BURN,
    StatusEffectType.STUN,
    StatusEffectType.BLEED,
    StatusEffectType.POISON,
    StatusEffectType.CONFUSE,
    StatusEffectType.DRAIN,
})

# Effect types that land on the user of the move unless told otherwise
SELF_TARGETED_BY_DEFAULT = frozenset({
    StatusEffectType.CLEANSE,
    StatusEffectType.REDUCE,
})

MAGNITUDE_FIELDS = (
    "damage_per_turn",
    "pp_loss_per_turn",
    "pp_steal_per_turn",
    "heal_per_turn",
    "chance",
    "damage_reduction",
)


def parse_effect_type(value: Any) -> Optional[StatusEffectType]:
    """Map a raw type value to StatusEffectType, or None when unrecognized."""
    if isinstance(value, StatusEffectType):
        return value
    if isinstance(value, str):
        try:
            return StatusEffectType(value.lower())
        except ValueError:
            return None
    return None


def _magnitudes_from_dict(data: Dict[str, Any]) -> Dict[str, int]:
    values = {}
    for name in MAGNITUDE_FIELDS:
        raw = data.get(name)
        if raw is not None:
            values[name] = int(raw)
    return values


@dataclass(frozen=True)
class StatusEffectTemplate:
    """A status effect a move attempts to apply on use.

    ``effect_type`` is kept as the raw value when it is not a known
    StatusEffectType so the resolver can warn and skip it.
    """
    effect_type: Any
    duration: int = 1
    success_chance: int = 100
    damage_per_turn: int = 0
    pp_loss_per_turn: int = 0
    pp_steal_per_turn: int = 0
    heal_per_turn: int = 0
    chance: int = 0
    damage_reduction: int = 0
    applies_to: Optional[EffectTarget] = None

    @property
    def known_type(self) -> Optional[StatusEffectType]:
        return parse_effect_type(self.effect_type)

    def recipient(self) -> EffectTarget:
        """Return who receives this effect when it lands."""
        if self.applies_to is not None:
            return self.applies_to
        if self.known_type in SELF_TARGETED_BY_DEFAULT:
            return EffectTarget.SELF
        return EffectTarget.TARGET

    def instantiate(self, source_id: str, applied_turn: int) -> "StatusEffectInstance":
        """Create the live instance for a successful application."""
        return StatusEffectInstance(
            effect_type=self.known_type,
            duration=self.duration,
            success_chance=self.success_chance,
            damage_per_turn=self.damage_per_turn,
            pp_loss_per_turn=self.pp_loss_per_turn,
            pp_steal_per_turn=self.pp_steal_per_turn,
            heal_per_turn=self.heal_per_turn,
            chance=self.chance,
            damage_reduction=self.damage_reduction,
            source_id=source_id,
            applied_turn=applied_turn,
            last_ticked_turn=applied_turn,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        effect_type = self.effect_type.value if isinstance(self.effect_type, StatusEffectType) else self.effect_type
        data = {
            "type": effect_type,
            "duration": self.duration,
            "success_chance": self.success_chance,
        }
        for name in MAGNITUDE_FIELDS:
            value = getattr(self, name)
            if value:
                data[name] = value
        if self.applies_to is not None:
            data["applies_to"] = self.applies_to.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatusEffectTemplate":
        """Create a template from a dictionary.

        Raises:
            ValueError: If numeric fields are not numbers
        """
        raw_type = data.get("type", data.get("effect_type"))
        known = parse_effect_type(raw_type)
        applies_to = data.get("applies_to")
        return cls(
            effect_type=known if known is not None else raw_type,
            duration=int(data.get("duration", 1)),
            success_chance=int(data.get("success_chance", data.get("successChance", 100))),
            applies_to=EffectTarget(applies_to) if applies_to else None,
            **_magnitudes_from_dict(data),
        )


@dataclass
class StatusEffectInstance:
    """A status effect active on a combatant.

    ``last_ticked_turn`` stamps the turn whose tick has already been applied.
    An instance created on turn T starts stamped with T, so its first tick
    fires on turn T + 1.
    """
    effect_type: StatusEffectType
    duration: int
    success_chance: int = 100
    damage_per_turn: int = 0
    pp_loss_per_turn: int = 0
    pp_steal_per_turn: int = 0
    heal_per_turn: int = 0
    chance: int = 0
    damage_reduction: int = 0
    source_id: Optional[str] = None
    applied_turn: int = 0
    last_ticked_turn: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.duration > 0

    @property
    def is_negative(self) -> bool:
        return self.effect_type in NEGATIVE_EFFECTS

    def has_ticked_on(self, turn: int) -> bool:
        return self.last_ticked_turn >= turn

    def ticked(self, turn: int) -> "StatusEffectInstance":
        """Return a copy with duration decremented and the turn stamped."""
        return replace(self, duration=max(0, self.duration - 1), last_ticked_turn=turn)

    def copy(self) -> "StatusEffectInstance":
        return replace(self, extra=dict(self.extra))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {
            "type": self.effect_type.value,
            "duration": self.duration,
            "success_chance": self.success_chance,
            "source_id": self.source_id,
            "applied_turn": self.applied_turn,
            "last_ticked_turn": self.last_ticked_turn,
        }
        for name in MAGNITUDE_FIELDS:
            data[name] = getattr(self, name)
        if self.extra:
            data["extra"] = dict(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["StatusEffectInstance"]:
        """Create StatusEffectInstance from dictionary representation.

        Args:
            data: Dictionary containing effect data

        Returns:
            Deserialized instance or None if the type is not recognized
        """
        effect_type = parse_effect_type(data.get("type", data.get("effect_type")))
        if effect_type is None:
            logger.warning(f"[StatusEffects] Dropping stored effect with unknown type: {data.get('type')}")
            return None
        return cls(
            effect_type=effect_type,
            duration=int(data.get("duration", 0)),
            success_chance=int(data.get("success_chance", 100)),
            source_id=data.get("source_id"),
            applied_turn=int(data.get("applied_turn", 0)),
            last_ticked_turn=int(data.get("last_ticked_turn", data.get("applied_turn", 0))),
            extra=dict(data.get("extra", {})),
            **_magnitudes_from_dict(data),
        )
