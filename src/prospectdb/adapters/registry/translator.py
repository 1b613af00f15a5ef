"""Translate registry search results into record updates."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prospectdb.domain.ingest.normalize import HEADCOUNT_LABELS, resolve_headcount
from prospectdb.domain.model import ApiStatus
from prospectdb.domain.ports import RegistryUpdate

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .schema import RegistryCompany, RegistrySearchResponse


def join_dirigeants(company: RegistryCompany) -> str | None:
    names = [name for d in company.dirigeants if (name := d.display_name)]
    return ", ".join(names) if names else None


def translate_company(
    company: RegistryCompany,
    *,
    labels: Mapping[str, str] = HEADCOUNT_LABELS,
) -> RegistryUpdate:
    siege = company.siege
    headcount = resolve_headcount(company.tranche_effectif_salarie, None, labels=labels)
    located = siege is not None and siege.latitude is not None and siege.longitude is not None
    return RegistryUpdate(
        status=ApiStatus.SUCCESS,
        siren=company.siren,
        siret=siege.siret if siege is not None else None,
        effectif_code=headcount.code,
        effectif_label=headcount.label,
        naf=company.activite_principale,
        date_creation=company.date_creation,
        dirigeants=join_dirigeants(company),
        lat=siege.latitude if located and siege is not None else None,
        lon=siege.longitude if located and siege is not None else None,
    )


def translate_search(
    response: RegistrySearchResponse,
    *,
    labels: Mapping[str, str] = HEADCOUNT_LABELS,
) -> RegistryUpdate:
    if not response.results:
        return RegistryUpdate(status=ApiStatus.NOT_FOUND)
    return translate_company(response.results[0], labels=labels)
