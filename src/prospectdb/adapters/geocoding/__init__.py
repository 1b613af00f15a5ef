"""Address geocoding adapter."""

from __future__ import annotations

from .client import GeocodingClient, geocoding_query

__all__ = ["GeocodingClient", "geocoding_query"]
