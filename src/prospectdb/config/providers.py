"""Configuration for the registry, geocoding and routing providers.

All three services are public French government APIs that need no credentials;
only their base URLs, caching and pacing can be tuned from the environment.
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, optional_float_env_var
from .errors import ConfigurationError
from .http_resilience import CacheBackend, CacheConfig, RateLimit, ResilienceConfig

DEFAULT_REGISTRY_URL = "https://recherche-entreprises.api.gouv.fr"
DEFAULT_GEOCODING_URL = "https://api-adresse.data.gouv.fr"
DEFAULT_ROUTING_URL = "https://data.geopf.fr/navigation"

REGISTRY_DELAY_SECONDS = 0.15
GEOCODING_DELAY_SECONDS = 0.10
ROUTING_DELAY_SECONDS = 0.20

USER_AGENT = "prospectdb (+https://pypi.org/project/prospectdb/)"


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """HTTP settings plus the pause inserted after each record of a batch."""

    resilience: ResilienceConfig
    delay_seconds: float


@dataclass(frozen=True, slots=True)
class ProvidersConfig:
    registry: ProviderConfig
    geocoding: ProviderConfig
    routing: ProviderConfig


def _cache_config() -> CacheConfig | None:
    backend = optional_env_var("PROSPECTDB_HTTP_CACHE", "sqlite").lower()
    if backend == "off":
        return None
    if backend not in {"sqlite", "memory"}:
        raise ConfigurationError(
            f"PROSPECTDB_HTTP_CACHE must be one of sqlite, memory, off; got {backend!r}"
        )
    cache_backend: CacheBackend = "sqlite" if backend == "sqlite" else "memory"
    return CacheConfig(backend=cache_backend)


def _provider(
    *,
    name: str,
    url_var: str,
    default_url: str,
    delay_var: str,
    default_delay: float,
    ratelimit: RateLimit,
    cache: CacheConfig | None,
) -> ProviderConfig:
    return ProviderConfig(
        resilience=ResilienceConfig(
            name=name,
            base_url=optional_env_var(url_var, default_url),
            ratelimit=ratelimit,
            cache=cache,
            default_headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        ),
        delay_seconds=optional_float_env_var(delay_var, default_delay),
    )


def get_providers_config() -> ProvidersConfig:
    cache = _cache_config()
    return ProvidersConfig(
        registry=_provider(
            name="registry",
            url_var="PROSPECTDB_REGISTRY_URL",
            default_url=DEFAULT_REGISTRY_URL,
            delay_var="PROSPECTDB_REGISTRY_DELAY",
            default_delay=REGISTRY_DELAY_SECONDS,
            ratelimit=RateLimit(max_calls=7, per_seconds=1.0),
            cache=cache,
        ),
        geocoding=_provider(
            name="geocoding",
            url_var="PROSPECTDB_GEOCODING_URL",
            default_url=DEFAULT_GEOCODING_URL,
            delay_var="PROSPECTDB_GEOCODING_DELAY",
            default_delay=GEOCODING_DELAY_SECONDS,
            ratelimit=RateLimit(max_calls=40, per_seconds=1.0),
            cache=cache,
        ),
        routing=_provider(
            name="routing",
            url_var="PROSPECTDB_ROUTING_URL",
            default_url=DEFAULT_ROUTING_URL,
            delay_var="PROSPECTDB_ROUTING_DELAY",
            default_delay=ROUTING_DELAY_SECONDS,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            cache=cache,
        ),
    )
