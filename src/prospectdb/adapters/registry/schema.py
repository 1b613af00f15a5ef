"""Response schemas for the company registry search API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RegistryBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class RegistryDirigeant(RegistryBaseModel):
    nom: str | None = None
    prenoms: str | None = None
    denomination: str | None = None
    qualite: str | None = None
    type_dirigeant: str | None = None

    @property
    def display_name(self) -> str | None:
        parts = [part for part in (self.prenoms, self.nom) if part]
        if parts:
            return " ".join(parts)
        return self.denomination


class RegistryEstablishment(RegistryBaseModel):
    siret: str | None = None
    adresse: str | None = None
    code_postal: str | None = None
    libelle_commune: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _blank_coordinate(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class RegistryCompany(RegistryBaseModel):
    siren: str | None = None
    nom_complet: str | None = None
    siege: RegistryEstablishment | None = None
    tranche_effectif_salarie: str | None = None
    activite_principale: str | None = None
    date_creation: str | None = None
    dirigeants: list[RegistryDirigeant] = Field(default_factory=list[RegistryDirigeant])


class RegistrySearchResponse(RegistryBaseModel):
    results: list[RegistryCompany] = Field(default_factory=list[RegistryCompany])
    total_results: int | None = None
    page: int | None = None
    per_page: int | None = None
