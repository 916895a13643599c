"""Move catalog and admin override layer.

Effective moves are the static catalog entry merged with an admin override
keyed by move id. The override cache lives on a provider object the caller
owns; ``invalidate()`` forces the next lookup to reload.
"""

import logging
import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from skillbattle.config.settings import get_settings
from skillbattle.mechanics.combat.exceptions import InvalidInputError
from skillbattle.models.combat.mechanics.damage_spec import parse_damage_spec
from skillbattle.models.combat.mechanics.move_definition import MoveDefinition
from skillbattle.models.combat.mechanics.status_effect import StatusEffectTemplate

logger = logging.getLogger(__name__)


class DamageRangeOverride(BaseModel):
    """Admin-entered damage range."""
    min: int = Field(ge=0)
    max: int = Field(ge=0)


class StatusEffectOverride(BaseModel):
    """Admin-entered status effect, accepting the stored camelCase names."""
    type: str
    duration: int = 1
    success_chance: int = Field(default=100, ge=0, le=100, alias="successChance")
    damage_per_turn: Optional[int] = Field(default=None, alias="damagePerTurn")
    pp_loss_per_turn: Optional[int] = Field(default=None, alias="ppLossPerTurn")
    pp_steal_per_turn: Optional[int] = Field(default=None, alias="ppStealPerTurn")
    heal_per_turn: Optional[int] = Field(default=None, alias="healPerTurn")
    chance: Optional[int] = None
    damage_reduction: Optional[int] = Field(default=None, alias="damageReduction")
    intensity: Optional[int] = None

    class Config:
        populate_by_name = True

    def to_template(self) -> StatusEffectTemplate:
        """Convert to a template; ``intensity`` fills the type's magnitude when unset."""
        data = self.model_dump(exclude_none=True)
        intensity = data.pop("intensity", None)
        if intensity is not None:
            magnitude_field = {
                "burn": "damage_per_turn",
                "bleed": "damage_per_turn",
                "poison": "pp_loss_per_turn",
                "drain": "pp_steal_per_turn",
                "confuse": "chance",
                "reduce": "damage_reduction",
            }.get(self.type.lower())
            if magnitude_field and magnitude_field not in data:
                data[magnitude_field] = intensity
        return StatusEffectTemplate.from_dict(data)


class MoveOverride(BaseModel):
    """Admin override for one move.

    The legacy single ``statusEffect`` is folded into ``status_effects`` so
    downstream code only ever sees one list.
    """
    name: Optional[str] = None
    damage: Optional[Union[int, DamageRangeOverride]] = None
    description: Optional[str] = None
    status_effects: Optional[List[StatusEffectOverride]] = Field(default=None, alias="statusEffects")
    status_effect: Optional[StatusEffectOverride] = Field(default=None, alias="statusEffect", exclude=True)

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def fold_legacy_status_effect(self) -> "MoveOverride":
        if self.status_effect is not None and not self.status_effects:
            self.status_effects = [self.status_effect]
        self.status_effect = None
        return self

    def apply_to(self, move: MoveDefinition) -> MoveDefinition:
        """Return ``move`` with this override's fields merged in."""
        changes: Dict[str, Any] = {}
        if self.name is not None:
            changes["name"] = self.name
        if self.damage is not None:
            raw = self.damage.model_dump() if isinstance(self.damage, DamageRangeOverride) else self.damage
            changes["damage"] = parse_damage_spec(raw)
        if self.description is not None:
            changes["description"] = self.description
        if self.status_effects is not None:
            changes["status_effects"] = [
                effect.to_template() for effect in self.status_effects
                if effect.type.lower() != "none"
            ]
        return replace(move, **changes)


class MoveOverrideSource:
    """Where admin overrides are stored. Returns raw dicts keyed by move id."""

    def load_overrides(self) -> Dict[str, Dict[str, Any]]:
        raise NotImplementedError


class InMemoryOverrideSource(MoveOverrideSource):
    """Override source backed by a dict, for local play and tests."""

    def __init__(self, overrides: Optional[Dict[str, Dict[str, Any]]] = None):
        self.overrides = dict(overrides or {})
        self.load_count = 0

    def set_override(self, move_id: str, data: Dict[str, Any]):
        self.overrides[move_id] = data

    def load_overrides(self) -> Dict[str, Dict[str, Any]]:
        self.load_count += 1
        return {key: dict(value) for key, value in self.overrides.items()}


class MoveOverrideProvider:
    """Caches parsed overrides for a bounded time.

    Call ``invalidate()`` after an admin edit; the next lookup reloads from
    the source instead of waiting for the TTL.
    """

    def __init__(self, source: MoveOverrideSource, ttl_seconds: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.source = source
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else get_settings().move_override_ttl_seconds
        self._clock = clock
        self._cache: Optional[Dict[str, MoveOverride]] = None
        self._loaded_at = 0.0

    def _is_fresh(self) -> bool:
        return self._cache is not None and (self._clock() - self._loaded_at) < self.ttl_seconds

    def _reload(self):
        parsed = {}
        for move_id, data in self.source.load_overrides().items():
            try:
                parsed[move_id] = MoveOverride.model_validate(data)
            except ValidationError as e:
                logger.warning(f"[MoveOverrides] Ignoring malformed override for {move_id}: {e}")
        self._cache = parsed
        self._loaded_at = self._clock()
        logger.debug(f"[MoveOverrides] Loaded {len(parsed)} overrides")

    def get_override(self, move_id: str) -> Optional[MoveOverride]:
        if not self._is_fresh():
            self._reload()
        return self._cache.get(move_id)

    def invalidate(self):
        """Drop cached overrides so the next lookup reloads them."""
        self._cache = None
        logger.info("[MoveOverrides] Override cache invalidated")


class MoveCatalog:
    """Static base move definitions keyed by id."""

    def __init__(self, moves: Optional[List[MoveDefinition]] = None):
        self._moves: Dict[str, MoveDefinition] = {}
        for move in moves or []:
            self.register(move)

    def register(self, move: MoveDefinition):
        move.validate()
        self._moves[move.move_id] = move

    def get(self, move_id: str) -> MoveDefinition:
        move = self._moves.get(move_id)
        if move is None:
            raise InvalidInputError(f"Unknown move: {move_id}", field="move_id")
        return move

    def __contains__(self, move_id: str) -> bool:
        return move_id in self._moves

    def all_moves(self) -> List[MoveDefinition]:
        return list(self._moves.values())

    @classmethod
    def from_dicts(cls, entries: List[Dict[str, Any]]) -> "MoveCatalog":
        return cls([MoveDefinition.from_dict(entry) for entry in entries])


class MoveDefinitionSource:
    """Looks up effective moves: catalog entry, then override, then mastery."""

    def __init__(self, catalog: MoveCatalog, overrides: Optional[MoveOverrideProvider] = None):
        self.catalog = catalog
        self.overrides = overrides

    def get_effective_move(self, move_id: str, mastery: Optional[int] = None) -> MoveDefinition:
        """Return the move as it should resolve right now.

        Raises:
            InvalidInputError: If the move is unknown or the merged move is malformed
        """
        move = self.catalog.get(move_id)
        if self.overrides is not None:
            override = self.overrides.get_override(move_id)
            if override is not None:
                move = override.apply_to(move)
        if mastery is not None:
            move = move.with_mastery(mastery)
        move.validate()
        return move

    def invalidate(self):
        if self.overrides is not None:
            self.overrides.invalidate()
