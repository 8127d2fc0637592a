from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .analytics import DIGIT_COUNT, FrequencyTable, compose, digit_at

VARIANT_LIMIT = 10
RANDOM_BATCH_SIZE = 12
MAX_DISTINCT_NUMBERS = 10 ** DIGIT_COUNT


class LinearCongruentialGenerator:
    """Numerical Recipes LCG: state = (state * 1664525 + 1013904223) mod 2**32."""

    MULTIPLIER = 1664525
    INCREMENT = 1013904223
    MODULUS = 2 ** 32

    def __init__(self, seed: int):
        self.state = int(seed) % self.MODULUS

    def next(self) -> float:
        self.state = (self.state * self.MULTIPLIER + self.INCREMENT) % self.MODULUS
        return self.state / self.MODULUS

    def next_digit(self) -> int:
        return int(self.next() * 10)


@dataclass(frozen=True)
class PredictionBundle:
    base_prediction: str
    variants: tuple[str, ...]
    random_batch: tuple[str, ...]
    transition_prediction: Optional[str] = None


def base_prediction(table: FrequencyTable) -> str:
    return compose([table.most_frequent(position) for position in range(DIGIT_COUNT)])


def variant_predictions(table: FrequencyTable, limit: int = VARIANT_LIMIT) -> List[str]:
    """Alternatives to the base prediction built from runner-up digits.

    First every position's runner-up is substituted on its own, then the
    substituted digit is walked through the other positions by successive
    swaps. ``limit`` caps the distinct strings including the base; the
    base itself is not returned.
    """
    leaders = [table.most_frequent(position) for position in range(DIGIT_COUNT)]
    runners_up = [table.second_most_frequent(position) for position in range(DIGIT_COUNT)]
    base = compose(leaders)
    seen = {base}
    variants: List[str] = []

    def add(digits: Sequence[int]) -> None:
        value = compose(digits)
        if value not in seen and len(seen) < limit:
            seen.add(value)
            variants.append(value)

    for position in range(DIGIT_COUNT):
        pattern = list(leaders)
        pattern[position] = runners_up[position]
        add(pattern)

    for i in range(DIGIT_COUNT):
        if len(seen) >= limit:
            break
        mixed = list(leaders)
        mixed[i] = runners_up[i]
        for j in range(DIGIT_COUNT):
            if len(seen) >= limit:
                break
            if i == j:
                continue
            mixed[i], mixed[j] = mixed[j], mixed[i]
            add(mixed)
    return variants


def random_batch(seed: int, size: int = RANDOM_BATCH_SIZE) -> List[str]:
    """Reproducible batch of distinct 4-digit strings for ``seed``."""
    if size < 0 or size > MAX_DISTINCT_NUMBERS:
        raise ValueError(f'Batch size must be between 0 and {MAX_DISTINCT_NUMBERS}')
    lcg = LinearCongruentialGenerator(seed)
    batch: List[str] = []
    used = set()
    while len(batch) < size:
        number = ''.join(str(lcg.next_digit()) for _ in range(DIGIT_COUNT))
        if number in used:
            continue
        used.add(number)
        batch.append(number)
    return batch


def transition_prediction(history: Sequence[str], latest: str) -> str:
    """Per position, the digit that most often followed ``latest``'s digit.

    ``history`` is ordered oldest first. A position whose digit never had a
    successor keeps its current digit; ties go to the lower digit.
    """
    result = []
    for position in range(DIGIT_COUNT):
        current = digit_at(latest, position)
        followers: Counter[int] = Counter()
        for previous, following in zip(history, history[1:]):
            if digit_at(previous, position) == current:
                followers[digit_at(following, position)] += 1
        if followers:
            result.append(min(followers, key=lambda digit: (-followers[digit], digit)))
        else:
            result.append(current)
    return compose(result)


def mirror_prediction(latest: str) -> str:
    return latest[::-1]


def generate(
    table: FrequencyTable,
    seed: int,
    batch_size: int = RANDOM_BATCH_SIZE,
    variant_limit: int = VARIANT_LIMIT,
    history: Optional[Sequence[str]] = None,
) -> PredictionBundle:
    transition = None
    if history:
        transition = transition_prediction(history, history[-1])
    return PredictionBundle(
        base_prediction=base_prediction(table),
        variants=tuple(variant_predictions(table, limit=variant_limit)),
        random_batch=tuple(random_batch(seed, size=batch_size)),
        transition_prediction=transition,
    )
