"""Sequential enrichment passes with progress events and cooperative cancellation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from prospectdb.domain.model import (
    ApiStatus,
    ContactRecord,
    EnrichmentKind,
    GeoStatus,
    utcnow,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Sequence
    from datetime import datetime

    from prospectdb.domain.model import StartPoint
    from prospectdb.domain.ports import (
        GeocodeUpdate,
        Geocoder,
        RegistryLookup,
        RegistryUpdate,
        RouteCalculator,
        RouteUpdate,
    )

log = logging.getLogger(__name__)

type RecordProcessor = Callable[[ContactRecord], Awaitable[ContactRecord]]
type ProgressListener = Callable[[Progress], None]
type Clock = Callable[[], datetime]


@dataclass(frozen=True, slots=True)
class Progress:
    kind: EnrichmentKind
    current: int
    total: int


@dataclass(slots=True)
class EnrichmentResult:
    """Records updated by one pass. ``cancelled`` passes hold a prefix of the work."""

    kind: EnrichmentKind
    total: int
    updated: list[ContactRecord] = field(default_factory=list[ContactRecord])
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return len(self.updated)


class EnrichmentTask:
    """Run ``process`` over records one at a time, sleeping ``delay_seconds`` between calls."""

    def __init__(
        self,
        kind: EnrichmentKind,
        process: RecordProcessor,
        *,
        delay_seconds: float = 0.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.kind = kind
        self._process = process
        self._delay_seconds = delay_seconds
        self._sleep = sleep
        self._listeners: list[ProgressListener] = []
        self._cancelled = False

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _emit(self, progress: Progress) -> None:
        for listener in tuple(self._listeners):
            listener(progress)

    async def run(self, records: Sequence[ContactRecord]) -> EnrichmentResult:
        total = len(records)
        result = EnrichmentResult(kind=self.kind, total=total)
        log.info("Starting %s pass over %s records", self.kind.value, total)

        for index, record in enumerate(records, start=1):
            if self._cancelled:
                result.cancelled = True
                log.info(
                    "%s pass cancelled after %s of %s records",
                    self.kind.value,
                    result.processed,
                    total,
                )
                break
            result.updated.append(await self._process(record))
            self._emit(Progress(kind=self.kind, current=index, total=total))
            if self._delay_seconds > 0:
                await self._sleep(self._delay_seconds)
        else:
            log.info("Finished %s pass: %s records", self.kind.value, total)

        return result


def select_for_registry(records: Iterable[ContactRecord]) -> list[ContactRecord]:
    """Records never looked up, or whose last lookup failed."""

    return [r for r in records if not r.api_enriched or r.api_status == ApiStatus.ERROR]


def select_for_geocoding(records: Iterable[ContactRecord]) -> list[ContactRecord]:
    return [r for r in records if r.lat is None and (r.address or r.postal_code)]


def select_for_routes(records: Iterable[ContactRecord]) -> list[ContactRecord]:
    return [r for r in records if r.is_geocoded and not r.duration_seconds]


def apply_registry_update(
    record: ContactRecord, update: RegistryUpdate, now: datetime
) -> ContactRecord:
    if update.status != ApiStatus.SUCCESS:
        return record.evolve(api_enriched=True, api_status=update.status, updated_at=now)

    located = update.lat is not None and update.lon is not None
    return record.evolve(
        api_enriched=True,
        api_status=update.status,
        siren=update.siren or record.siren,
        siret=update.siret or record.siret,
        api_effectif_code=update.effectif_code,
        api_effectif_label=update.effectif_label,
        api_naf=update.naf,
        api_date_creation=update.date_creation,
        api_dirigeants=update.dirigeants,
        lat=update.lat if located else record.lat,
        lon=update.lon if located else record.lon,
        geo_status=GeoStatus.SUCCESS if located else record.geo_status,
        updated_at=now,
    )


def apply_geocode_update(
    record: ContactRecord, update: GeocodeUpdate, now: datetime
) -> ContactRecord:
    return record.evolve(lat=update.lat, lon=update.lon, geo_status=update.status, updated_at=now)


def apply_route_update(record: ContactRecord, update: RouteUpdate, now: datetime) -> ContactRecord:
    return record.evolve(
        distance_meters=update.distance_meters,
        duration_seconds=update.duration_seconds,
        route_status=update.status,
        updated_at=now,
    )


def registry_task(
    lookup: RegistryLookup,
    *,
    delay_seconds: float = 0.0,
    clock: Clock = utcnow,
) -> EnrichmentTask:
    async def process(record: ContactRecord) -> ContactRecord:
        return apply_registry_update(record, await lookup.lookup(record), clock())

    return EnrichmentTask(EnrichmentKind.REGISTRY, process, delay_seconds=delay_seconds)


def geocoding_task(
    geocoder: Geocoder,
    *,
    delay_seconds: float = 0.0,
    clock: Clock = utcnow,
) -> EnrichmentTask:
    async def process(record: ContactRecord) -> ContactRecord:
        update = await geocoder.geocode(record.address, record.postal_code, record.city)
        return apply_geocode_update(record, update, clock())

    return EnrichmentTask(EnrichmentKind.GEOCODING, process, delay_seconds=delay_seconds)


def routing_task(
    calculator: RouteCalculator,
    start: StartPoint,
    *,
    delay_seconds: float = 0.0,
    clock: Clock = utcnow,
) -> EnrichmentTask:
    if not start.is_located:
        raise ValueError(f"Start point {start.address!r} has no coordinates")
    origin = (start.lat, start.lon)

    async def process(record: ContactRecord) -> ContactRecord:
        update = await calculator.route(origin, (record.lat, record.lon))  # type: ignore[arg-type]
        return apply_route_update(record, update, clock())

    return EnrichmentTask(EnrichmentKind.ROUTING, process, delay_seconds=delay_seconds)
