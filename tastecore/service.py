from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .buckets import SpeedTier, speed_in_tier
from .errors import InvalidParametersError, ProfileNotFoundError
from .mapping import ChangeInput, ParameterMapper
from .params import (
    MusicTasteParameters,
    OutOfRangePolicy,
    VisualParameters,
    parse_update,
)
from .schema import in_percent_range
from .session import TasteSession
from .store import InMemoryProfileStore, ProfileStore

_LOGGER = logging.getLogger("tastecore.service")

DEFAULT_IDENTITY = "default"


@dataclass(frozen=True, slots=True)
class SpeedCheck:
    tier: SpeedTier
    success: bool
    speed: int

    @property
    def message(self) -> str:
        outcome = "succeeded" if self.success else "failed"
        return f"{self.tier.capitalize()} endpoint {outcome}"


class ProfileService:
    """Per-identity visual parameters on top of a profile store.

    Identities without a record get the default parameters, which are stored
    on first access. Writes are last-write-wins.
    """

    def __init__(
        self,
        store: ProfileStore | None = None,
        *,
        mapper: ParameterMapper | None = None,
    ) -> None:
        self.store: ProfileStore = store if store is not None else InMemoryProfileStore()
        self.mapper = mapper or ParameterMapper()

    def get_values(self, identity: str = DEFAULT_IDENTITY) -> VisualParameters:
        try:
            return self.store.get(identity)
        except ProfileNotFoundError:
            _LOGGER.info("No profile for %r yet, storing defaults", identity)
            params = VisualParameters()
            self.store.insert(identity, params)
            return params

    def _save(self, identity: str, params: VisualParameters) -> VisualParameters:
        try:
            self.store.put(identity, params)
        except ProfileNotFoundError:
            self.store.insert(identity, params)
        return params

    def update(
        self,
        payload: Mapping[str, Any],
        identity: str = DEFAULT_IDENTITY,
        *,
        out_of_range: OutOfRangePolicy = "drop",
    ) -> VisualParameters:
        update = parse_update(payload, out_of_range=out_of_range)
        params = update.apply_to(self.get_values(identity))
        _LOGGER.debug("Updating %r with %s", identity, update.changes())
        return self._save(identity, params)

    def apply_taste(
        self,
        taste: MusicTasteParameters,
        change: ChangeInput,
        identity: str = DEFAULT_IDENTITY,
    ) -> VisualParameters:
        session = TasteSession(visual=self.get_values(identity), taste=taste, mapper=self.mapper)
        return self._save(identity, session.apply(change))

    def apply_taste_profile(
        self,
        taste: MusicTasteParameters,
        identity: str = DEFAULT_IDENTITY,
    ) -> VisualParameters:
        session = TasteSession(visual=self.get_values(identity), mapper=self.mapper)
        return self._save(identity, session.load_taste(taste))

    def get_speed(self, identity: str = DEFAULT_IDENTITY) -> int:
        return self.get_values(identity).speed

    def set_speed(self, value: Any, identity: str = DEFAULT_IDENTITY) -> int:
        """Store a new speed; only whole numbers within [0, 100] are accepted.

        Floats are allowed when integral (`40.0`), so the stored value always
        equals the one given.
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidParametersError("Invalid speed value")
        if isinstance(value, float) and not value.is_integer():
            raise InvalidParametersError("Invalid speed value")
        if not in_percent_range(value):
            raise InvalidParametersError("Invalid speed value")
        params = self.update({"speed": value}, identity)
        return params.speed

    def check_speed(self, tier: SpeedTier, identity: str = DEFAULT_IDENTITY) -> SpeedCheck:
        speed = self.get_speed(identity)
        return SpeedCheck(tier=tier, success=speed_in_tier(speed, tier), speed=speed)
