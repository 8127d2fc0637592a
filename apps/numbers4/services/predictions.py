from __future__ import annotations

from datetime import date, timedelta
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from ..models import DrawResult, PredictionSet
from .analytics import analyze
from .config import get_pipeline_config
from .generator import generate, mirror_prediction
from .store import ResultStore, StoreUnavailable

logger = logging.getLogger('numbers4')

# Offset between the two LCG seeds derived from one target draw number.
HYBRID_SEED_OFFSET = 1000


class PredictionAlreadyExists(RuntimeError):
    def __init__(self, draw_number: int):
        super().__init__(f'Predictions for draw {draw_number} already exist; use force to regenerate')
        self.draw_number = draw_number


class InsufficientData(ValueError):
    pass


def is_draw_day(day: date, holidays: Iterable[date] = ()) -> bool:
    if day.weekday() >= 5:
        return False
    if (day.month == 12 and day.day == 31) or (day.month == 1 and day.day <= 3):
        return False
    return day not in set(holidays)


def next_draw_date(from_date: date, holidays: Iterable[date] = ()) -> date:
    """First drawing day strictly after ``from_date``.

    Drawings run Monday to Friday, except public holidays and the
    Dec 31 - Jan 3 break.
    """
    holidays = set(holidays)
    candidate = from_date + timedelta(days=1)
    while not is_draw_day(candidate, holidays):
        candidate += timedelta(days=1)
    return candidate


def _unique(values: Iterable[Optional[str]], limit: int) -> List[str]:
    result: List[str] = []
    for value in values:
        if value and value not in result:
            result.append(value)
        if len(result) >= limit:
            break
    return result


def build_candidate_lists(
    window: Sequence[DrawResult],
    target_draw_number: int,
    batch_size: int = 10,
    random_batch_size: int = 12,
) -> Dict[str, List[str]]:
    """Named prediction lists for ``target_draw_number`` from a window of past draws.

    ``window`` may be in any order; it is sorted by draw number here.
    """
    if not window:
        raise InsufficientData('No stored draws to predict from')
    chronological = sorted(window, key=lambda draw: draw.draw_number)
    history = [draw.winning_number for draw in chronological]
    latest = history[-1]
    table = analyze(history)

    primary = generate(
        table,
        seed=target_draw_number,
        batch_size=random_batch_size,
        variant_limit=batch_size,
        history=history,
    )
    hybrid = generate(
        table,
        seed=target_draw_number + HYBRID_SEED_OFFSET,
        batch_size=random_batch_size,
        variant_limit=batch_size,
    )
    return {
        'frequency': _unique([primary.base_prediction, *primary.variants], batch_size),
        'data_logic': _unique(
            [primary.transition_prediction, primary.base_prediction, mirror_prediction(latest)],
            batch_size,
        ),
        'random': _unique(primary.random_batch, batch_size),
        'hybrid': _unique(hybrid.random_batch, batch_size),
    }


def generate_prediction_set(
    draw_number: Optional[int] = None,
    window: Optional[int] = None,
    force: bool = False,
    store: ResultStore | None = None,
) -> PredictionSet:
    config = get_pipeline_config()
    store = store or ResultStore()
    window = window or config.analysis_window

    latest_draw = store.latest(1)
    if not latest_draw:
        raise InsufficientData('No stored draws to predict from')
    latest_draw = latest_draw[0]

    target = draw_number if draw_number is not None else latest_draw.draw_number + 1
    if target <= 1:
        raise InsufficientData(f'Draw {target} has no preceding draws')

    try:
        if not force and PredictionSet.objects.filter(draw_number=target).exists():
            raise PredictionAlreadyExists(target)
    except DatabaseError as exc:
        raise StoreUnavailable('Prediction store unavailable', str(exc)) from exc

    records = store.range_before(target, window)
    candidates = build_candidate_lists(
        records,
        target_draw_number=target,
        batch_size=config.prediction_batch_size,
        random_batch_size=config.random_batch_size,
    )
    previous = max(records, key=lambda draw: draw.draw_number)
    stored = store.find_by_number(target)
    if stored:
        draw_date = stored.draw_date
    else:
        draw_date = previous.draw_date
        for _ in range(target - previous.draw_number):
            draw_date = next_draw_date(draw_date, config.holidays)

    defaults = {
        'draw_date': draw_date,
        'window': len(records),
        'candidates': candidates,
        'generated_at': timezone.now(),
    }
    try:
        with transaction.atomic():
            if force:
                prediction, created = PredictionSet.objects.update_or_create(draw_number=target, defaults=defaults)
            else:
                prediction = PredictionSet.objects.create(draw_number=target, **defaults)
                created = True
    except IntegrityError as exc:
        raise PredictionAlreadyExists(target) from exc
    except DatabaseError as exc:
        raise StoreUnavailable('Prediction store unavailable', str(exc)) from exc

    logger.info(
        '%s predictions for draw %s (%s) from %s draws: %s',
        'Generated' if created else 'Regenerated',
        target,
        draw_date,
        len(records),
        {name: len(values) for name, values in candidates.items()},
    )
    return prediction


def latest_prediction_set() -> Optional[PredictionSet]:
    return PredictionSet.objects.order_by('-draw_number').first()


def find_prediction_set(draw_number: int) -> Optional[PredictionSet]:
    return PredictionSet.objects.filter(draw_number=draw_number).first()
