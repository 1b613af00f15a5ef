"""Response schema for the route calculation API."""

from __future__ import annotations

from typing import Final

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

_SECONDS_PER_UNIT: Final = {"second": 1.0, "minute": 60.0, "hour": 3600.0}
_METERS_PER_UNIT: Final = {"meter": 1.0, "kilometer": 1000.0}


class RouteResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    distance: float | None = None
    duration: float | None = None
    distance_unit: str = Field(
        default="meter",
        validation_alias=AliasChoices("distanceUnit", "distance_unit"),
    )
    time_unit: str = Field(
        default="second",
        validation_alias=AliasChoices("timeUnit", "time_unit"),
    )

    @property
    def distance_meters(self) -> float | None:
        if self.distance is None:
            return None
        return self.distance * _METERS_PER_UNIT.get(self.distance_unit, 1.0)

    @property
    def duration_seconds(self) -> float | None:
        if self.duration is None:
            return None
        return self.duration * _SECONDS_PER_UNIT.get(self.time_unit, 1.0)
