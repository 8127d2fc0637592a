from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from math import factorial
import logging
from typing import Callable, Dict, List, Optional, Sequence

from ..models import DrawResult
from .analytics import DIGIT_COUNT
from .config import get_pipeline_config
from .predictions import build_candidate_lists
from .store import ResultStore

logger = logging.getLogger('numbers4')

STRAIGHT = 'straight'
BOX = 'box'
MISS = 'miss'

NUMBER_SPACE = 10 ** DIGIT_COUNT


def is_straight_hit(prediction: str, winning_number: str) -> bool:
    return prediction == winning_number


def is_box_hit(prediction: str, winning_number: str) -> bool:
    """Same digits in any order. Exact matches count as box hits here too."""
    return sorted(prediction) == sorted(winning_number)


def classify(prediction: str, winning_number: str) -> str:
    if is_straight_hit(prediction, winning_number):
        return STRAIGHT
    if is_box_hit(prediction, winning_number):
        return BOX
    return MISS


def distinct_orderings(number: str) -> int:
    """How many different strings share ``number``'s digits: 1, 4, 6, 12 or 24."""
    orderings = factorial(len(number))
    for count in Counter(number).values():
        orderings //= factorial(count)
    return orderings


@dataclass
class RecordOutcome:
    draw_number: int
    winning_number: str
    outcome: str
    matched: List[str] = field(default_factory=list)
    orderings: int = 0

    def as_dict(self) -> dict:
        return {
            'draw_number': self.draw_number,
            'winning_number': self.winning_number,
            'outcome': self.outcome,
            'matched': list(self.matched),
            'orderings': self.orderings,
        }


@dataclass
class BacktestReport:
    straight_hits: int = 0
    box_hits: int = 0
    details: List[RecordOutcome] = field(default_factory=list)
    prediction_count: int = 0

    @property
    def evaluated(self) -> int:
        return len(self.details)

    @property
    def misses(self) -> int:
        return self.evaluated - self.straight_hits - self.box_hits

    @property
    def observed(self) -> Dict[str, float]:
        total = max(self.evaluated, 1)
        return {
            STRAIGHT: round(self.straight_hits / total, 6),
            BOX: round(self.box_hits / total, 6),
        }

    @property
    def baseline(self) -> Dict[str, float]:
        """Chance rates for the tested predictions; informational only.

        A single prediction hits straight with probability 1/10000 and box
        (excluding the straight) with (orderings - 1)/10000, at most 23/10000.
        Rates are per evaluated draw when ``prediction_count`` predictions
        are played each time.
        """
        if not self.details:
            return {STRAIGHT: 0.0, BOX: 0.0}
        per_draw = max(self.prediction_count, 1)
        average_box = sum(detail.orderings - 1 for detail in self.details) / len(self.details)
        return {
            STRAIGHT: round(min(per_draw / NUMBER_SPACE, 1.0), 6),
            BOX: round(min(per_draw * average_box / NUMBER_SPACE, 1.0), 6),
        }

    def merge(self, other: 'BacktestReport') -> None:
        self.straight_hits += other.straight_hits
        self.box_hits += other.box_hits
        self.details.extend(other.details)
        self.prediction_count = max(self.prediction_count, other.prediction_count)

    def as_dict(self) -> dict:
        return {
            'straight_hits': self.straight_hits,
            'box_hits': self.box_hits,
            'misses': self.misses,
            'evaluated': self.evaluated,
            'observed': self.observed,
            'baseline': self.baseline,
            'details': [detail.as_dict() for detail in self.details],
        }


def evaluate(predictions: Sequence[str], actual_records: Sequence[DrawResult]) -> BacktestReport:
    """Classify each actual draw against every prediction.

    Each draw counts once, under its best outcome: straight beats box beats
    miss. A draw with a straight hit is never also counted as a box hit.
    """
    unique_predictions = list(dict.fromkeys(predictions))
    report = BacktestReport(prediction_count=len(unique_predictions))
    for record in actual_records:
        winning = record.winning_number
        straight = [p for p in unique_predictions if is_straight_hit(p, winning)]
        box = [p for p in unique_predictions if not is_straight_hit(p, winning) and is_box_hit(p, winning)]
        if straight:
            outcome, matched = STRAIGHT, straight
            report.straight_hits += 1
        elif box:
            outcome, matched = BOX, box
            report.box_hits += 1
        else:
            outcome, matched = MISS, []
        report.details.append(
            RecordOutcome(
                draw_number=record.draw_number,
                winning_number=winning,
                outcome=outcome,
                matched=matched,
                orderings=distinct_orderings(winning),
            )
        )
    return report


def default_predictor(window: Sequence[DrawResult], target_draw_number: int) -> List[str]:
    config = get_pipeline_config()
    lists = build_candidate_lists(
        window,
        target_draw_number=target_draw_number,
        batch_size=config.prediction_batch_size,
        random_batch_size=config.random_batch_size,
    )
    return lists['frequency']


def run_backtest(
    draws: Optional[int] = None,
    window: Optional[int] = None,
    predictor: Callable[[Sequence[DrawResult], int], List[str]] = default_predictor,
    store: ResultStore | None = None,
) -> BacktestReport:
    """Walk-forward backtest over the most recent ``draws`` stored results.

    Predictions for each draw only see the ``window`` draws before it.
    Draws with no earlier data are left out.
    """
    config = get_pipeline_config()
    store = store or ResultStore()
    draws = config.backtest_draws if draws is None else draws
    window = window or config.analysis_window

    report = BacktestReport()
    for target in reversed(store.latest(draws)):
        history = store.range_before(target.draw_number, window)
        if not history:
            logger.info('Skipping draw %s: no earlier draws', target.draw_number)
            continue
        predictions = predictor(history, target.draw_number)
        report.merge(evaluate(predictions, [target]))

    logger.info(
        'Backtest over %s draws: straight=%s box=%s baseline=%s',
        report.evaluated,
        report.straight_hits,
        report.box_hits,
        report.baseline,
    )
    return report
