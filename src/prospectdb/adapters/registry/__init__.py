"""Company registry adapter."""

from __future__ import annotations

from .client import RegistryClient, registry_query
from .translator import translate_company, translate_search

__all__ = [
    "RegistryClient",
    "registry_query",
    "translate_company",
    "translate_search",
]
