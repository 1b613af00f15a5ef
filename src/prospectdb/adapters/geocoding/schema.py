"""GeoJSON response schemas for the address search API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GeocodingBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class PointGeometry(GeocodingBaseModel):
    type: str = "Point"
    coordinates: tuple[float, float]

    @property
    def lon(self) -> float:
        return self.coordinates[0]

    @property
    def lat(self) -> float:
        return self.coordinates[1]


class AddressProperties(GeocodingBaseModel):
    label: str | None = None
    score: float | None = None
    postcode: str | None = None
    city: str | None = None


class AddressFeature(GeocodingBaseModel):
    geometry: PointGeometry
    properties: AddressProperties = Field(default_factory=AddressProperties)


class AddressSearchResponse(GeocodingBaseModel):
    features: list[AddressFeature] = Field(default_factory=list[AddressFeature])
