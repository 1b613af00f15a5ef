"""Company registry search client."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from prospectdb.adapters.http_resilience import ProviderClient
from prospectdb.domain.ingest.normalize import HEADCOUNT_LABELS
from prospectdb.domain.model import ApiStatus
from prospectdb.domain.ports import RegistryUpdate

from .schema import RegistrySearchResponse
from .translator import translate_search

if TYPE_CHECKING:
    from collections.abc import Mapping

    from prospectdb.adapters.http_resilience import ClientFactory
    from prospectdb.config import ResilienceConfig
    from prospectdb.domain.model import ContactRecord

log = getLogger(__name__)

SEARCH_PATH = "/search"


def registry_query(record: ContactRecord) -> str:
    """SIRET when known, otherwise ``"{name} {city}"``."""

    if record.siret:
        return record.siret
    return f"{record.name or ''} {record.city or ''}".strip()


class RegistryClient(ProviderClient):
    """Looks up companies by SIRET or by name and city."""

    def __init__(
        self,
        *,
        config: ResilienceConfig,
        client_factory: ClientFactory | None = None,
        headcount_labels: Mapping[str, str] = HEADCOUNT_LABELS,
    ) -> None:
        super().__init__(config=config, client_factory=client_factory)
        self._labels = headcount_labels

    async def search(self, query: str) -> RegistrySearchResponse:
        payload = await self._get_json(
            SEARCH_PATH,
            {"q": query, "page": "1", "per_page": "1"},
        )
        return RegistrySearchResponse.model_validate(payload)

    async def lookup(self, record: ContactRecord) -> RegistryUpdate:
        query = registry_query(record)
        if not query:
            return RegistryUpdate(status=ApiStatus.NO_DATA)
        try:
            response = await self.search(query)
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            log.warning("Registry lookup failed for %s (%r): %s", record.unique_id, query, exc)
            return RegistryUpdate(status=ApiStatus.ERROR)

        update = translate_search(response, labels=self._labels)
        if update.status == ApiStatus.NOT_FOUND:
            log.info("Registry has no match for %s (%r)", record.unique_id, query)
        return update
