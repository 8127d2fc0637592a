from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
import logging
from typing import List, Optional, Sequence

from django.db import DatabaseError
from django.utils import timezone

from ..models import IngestionLog
from .config import get_pipeline_config
from .sources.base import RawCandidate, SourceAdapter, SourceUnavailable
from .store import NormalizedDraw, ResultStore, StoreUnavailable

logger = logging.getLogger('numbers4')

# Numbers4 draw #1 was held on 1994-10-07.
FIRST_DRAW_DATE = date(1994, 10, 7)


@dataclass
class IngestionReport:
    inserted: int = 0
    skipped: int = 0
    duplicates: int = 0
    stale: int = 0
    trimmed: int = 0
    processed: int = 0
    sources: List[str] = field(default_factory=list)
    failed_sources: List[tuple[str, str]] = field(default_factory=list)

    @property
    def status(self) -> str:
        if self.failed_sources and len(self.failed_sources) == len(self.sources):
            return 'failed'
        if self.failed_sources or self.skipped:
            return 'partial'
        return 'success'

    @property
    def message(self) -> str:
        text = (
            f"Processed {self.processed} candidates, inserted {self.inserted}, "
            f"skipped {self.skipped}, duplicates {self.duplicates}, stale {self.stale}, trimmed {self.trimmed}"
        )
        if self.failed_sources:
            failed = ', '.join(f"{name} ({reason})" for name, reason in self.failed_sources)
            text = f"{text}; failed sources: {failed}"
        return text


def validate_candidate(candidate: RawCandidate, today: Optional[date] = None) -> tuple[bool, str]:
    today = today or timezone.localdate()
    if candidate.draw_number is None or candidate.draw_number < 1:
        return False, 'missing or non-positive draw number'
    if candidate.winning_number is None:
        return False, 'missing winning number'
    if len(candidate.winning_number) != 4 or not candidate.winning_number.isdigit():
        return False, f'winning number {candidate.winning_number!r} is not 4 digits'
    if candidate.draw_date is None:
        return False, 'missing draw date'
    if candidate.draw_date < FIRST_DRAW_DATE:
        return False, f'draw date {candidate.draw_date} precedes the first drawing'
    if candidate.draw_date > today + timedelta(days=1):
        return False, f'draw date {candidate.draw_date} is in the future'
    return True, ''


def normalize_candidate(candidate: RawCandidate) -> NormalizedDraw:
    return NormalizedDraw(
        draw_number=int(candidate.draw_number),
        draw_date=candidate.draw_date,
        winning_number=candidate.winning_number,
        straight_winners=candidate.straight_winners or 0,
        straight_amount=candidate.straight_amount or 0,
        box_winners=candidate.box_winners or 0,
        box_amount=candidate.box_amount or 0,
        sales_amount=candidate.sales_amount,
        source=candidate.source,
        source_url=candidate.source_url,
        fetched_at=timezone.now(),
    )


class IngestionCoordinator:
    """Runs adapters in priority order and writes their candidates to the store.

    A failing source is recorded and the next one runs; only store failures
    (``StoreUnavailable``) abort the run. Re-running with unchanged sources
    inserts nothing.
    """

    def __init__(
        self,
        store: ResultStore | None = None,
        retention_limit: Optional[int] = None,
        max_pages: Optional[int] = None,
        today: Optional[date] = None,
    ):
        config = get_pipeline_config()
        self.store = store or ResultStore()
        self.retention_limit = config.retention_limit if retention_limit is None else retention_limit
        self.max_pages = config.max_pages if max_pages is None else max_pages
        self.today = today

    def run(self, sources: Sequence[SourceAdapter], incremental: bool = True) -> IngestionReport:
        report = IngestionReport()
        since_draw = self.store.latest_draw_number() if incremental else None
        floor = self._retention_floor()
        logger.info(
            'Starting ingestion: sources=%s since=%s max_pages=%s retention=%s',
            ','.join(source.name for source in sources),
            since_draw,
            self.max_pages,
            self.retention_limit,
        )

        for source in sources:
            report.sources.append(source.name)
            try:
                candidates = source.fetch_candidates(since_draw=since_draw, max_pages=self.max_pages)
            except SourceUnavailable as exc:
                reason = f"{exc} ({exc.detail})" if exc.detail else str(exc)
                logger.warning('Source %s failed: %s', source.name, reason)
                report.failed_sources.append((source.name, reason))
                continue

            inserted_before = report.inserted
            for candidate in candidates:
                self._ingest_candidate(candidate, report, floor)
            logger.info(
                'Source %s yielded %s candidates, inserted %s',
                source.name,
                len(candidates),
                report.inserted - inserted_before,
            )

        if self.retention_limit > 0:
            report.trimmed = self.store.trim_to_ceiling(self.retention_limit)
        self._write_log(report)
        logger.info('Ingestion completed: %s', report.message)
        return report

    def _ingest_candidate(self, candidate: RawCandidate, report: IngestionReport, floor: Optional[int]) -> None:
        report.processed += 1
        is_valid, reason = validate_candidate(candidate, self.today)
        if not is_valid:
            logger.warning('Skipping candidate from %s: %s', candidate.source, reason)
            report.skipped += 1
            return
        if floor is not None and candidate.draw_number < floor:
            # Older than everything retained; it would be trimmed right away.
            report.stale += 1
            return
        if self.store.upsert_if_absent(normalize_candidate(candidate)):
            report.inserted += 1
        else:
            report.duplicates += 1

    def _retention_floor(self) -> Optional[int]:
        if self.retention_limit <= 0:
            return None
        retained = self.store.latest(self.retention_limit)
        if len(retained) < self.retention_limit:
            return None
        return retained[-1].draw_number

    def _write_log(self, report: IngestionReport) -> None:
        try:
            IngestionLog.objects.create(
                status=report.status,
                sources=','.join(report.sources)[:255],
                message=report.message,
                draws_inserted=report.inserted,
                draws_skipped=report.skipped,
                draws_duplicate=report.duplicates,
                draws_stale=report.stale,
                draws_trimmed=report.trimmed,
            )
        except DatabaseError as exc:
            raise StoreUnavailable('Failed to record ingestion run', str(exc)) from exc


def ingest_draws(
    sources: Sequence[SourceAdapter],
    retention_limit: Optional[int] = None,
    max_pages: Optional[int] = None,
    incremental: bool = True,
) -> IngestionReport:
    coordinator = IngestionCoordinator(retention_limit=retention_limit, max_pages=max_pages)
    return coordinator.run(sources, incremental=incremental)
