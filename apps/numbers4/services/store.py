from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from functools import wraps
import logging
from typing import List, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from ..models import DrawResult

logger = logging.getLogger('numbers4')


class StoreUnavailable(RuntimeError):
    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.detail = detail or ''


@dataclass(frozen=True)
class NormalizedDraw:
    draw_number: int
    draw_date: date
    winning_number: str
    straight_winners: int = 0
    straight_amount: int = 0
    box_winners: int = 0
    box_amount: int = 0
    sales_amount: Optional[int] = None
    source: str = ''
    source_url: str = ''
    fetched_at: datetime = field(default_factory=timezone.now)


def _guard(method):
    @wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except DatabaseError as exc:
            raise StoreUnavailable('Result store unavailable', str(exc)) from exc

    return wrapper


class ResultStore:
    """Read/write access to stored draw results.

    Writes go through ``upsert_if_absent`` only. Every call is safe to
    repeat with the same input; database failures surface as
    ``StoreUnavailable``.
    """

    @_guard
    def upsert_if_absent(self, record: NormalizedDraw) -> bool:
        with transaction.atomic():
            _, created = DrawResult.objects.get_or_create(
                draw_number=record.draw_number,
                defaults={
                    'draw_date': record.draw_date,
                    'winning_number': record.winning_number,
                    'straight_winners': record.straight_winners,
                    'straight_amount': record.straight_amount,
                    'box_winners': record.box_winners,
                    'box_amount': record.box_amount,
                    'sales_amount': record.sales_amount,
                    'source': record.source,
                    'source_url': record.source_url,
                    'fetched_at': record.fetched_at,
                },
            )
        return created

    @_guard
    def count(self) -> int:
        return DrawResult.objects.count()

    @_guard
    def latest(self, n: Optional[int] = None) -> List[DrawResult]:
        qs = DrawResult.objects.order_by('-draw_number')
        if n is not None:
            qs = qs[: max(n, 0)]
        return list(qs)

    @_guard
    def latest_draw_number(self) -> Optional[int]:
        return DrawResult.objects.order_by('-draw_number').values_list('draw_number', flat=True).first()

    @_guard
    def find_by_number(self, draw_number: int) -> Optional[DrawResult]:
        return DrawResult.objects.filter(draw_number=draw_number).first()

    @_guard
    def range_before(self, draw_number: int, window_size: int) -> List[DrawResult]:
        qs = DrawResult.objects.filter(draw_number__lt=draw_number).order_by('-draw_number')
        return list(qs[: max(window_size, 0)])

    @_guard
    def trim_to_ceiling(self, limit: int) -> int:
        if limit < 0:
            raise ValueError('Retention limit must be non-negative')
        with transaction.atomic():
            overflow = list(
                DrawResult.objects.order_by('-draw_number').values_list('pk', flat=True)[limit:]
            )
            if not overflow:
                return 0
            deleted, _ = DrawResult.objects.filter(pk__in=overflow).delete()
        logger.info('Trimmed %s draw(s) to keep %s most recent', deleted, limit)
        return deleted
