from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Union

from ..models import DrawResult

DIGIT_COUNT = 4
POSITION_LABELS = ['ones', 'tens', 'hundreds', 'thousands']

WindowItem = Union[DrawResult, str]


def winning_digits(record: WindowItem) -> str:
    value = record if isinstance(record, str) else record.winning_number
    if len(value) != DIGIT_COUNT or not value.isdigit():
        raise ValueError(f'Winning number must be {DIGIT_COUNT} digits, got {value!r}')
    return value


def digit_at(number: str, position: int) -> int:
    """Digit at ``position`` where position 0 is the rightmost (ones) digit."""
    return int(number[DIGIT_COUNT - 1 - position])


def compose(digits_by_position: Sequence[int]) -> str:
    """Render position-indexed digits (0 = ones) in display order, thousands first."""
    return ''.join(str(digits_by_position[position]) for position in reversed(range(DIGIT_COUNT)))


@dataclass(frozen=True)
class FrequencyTable:
    """Per-position digit counts over an analysis window.

    ``counts[p][d]`` is how often digit ``d`` appeared at position ``p``,
    with position 0 being the rightmost digit. Rankings order by count
    descending and break ties by the lower digit, so results never depend
    on record order.
    """

    counts: tuple[tuple[int, ...], ...]
    window_size: int

    def ranked(self, position: int) -> List[int]:
        row = self.counts[position]
        return sorted(range(10), key=lambda digit: (-row[digit], digit))

    def most_frequent(self, position: int) -> int:
        return self.ranked(position)[0]

    def second_most_frequent(self, position: int) -> int:
        """Runner-up digit; falls back to the leader when no other digit was seen."""
        ranked = self.ranked(position)
        runner_up = ranked[1]
        if self.counts[position][runner_up] == 0:
            return ranked[0]
        return runner_up

    def total(self, position: int) -> int:
        return sum(self.counts[position])

    def as_dict(self) -> dict:
        positions = []
        for position in range(DIGIT_COUNT):
            total = self.total(position)
            positions.append(
                {
                    'position': position,
                    'label': POSITION_LABELS[position],
                    'most_frequent': self.most_frequent(position),
                    'digits': [
                        {
                            'digit': digit,
                            'count': self.counts[position][digit],
                            'probability': round(self.counts[position][digit] / total, 4) if total else 0.0,
                        }
                        for digit in self.ranked(position)
                    ],
                }
            )
        return {'window_size': self.window_size, 'positions': positions}


def analyze(window_records: Iterable[WindowItem]) -> FrequencyTable:
    counts = [[0] * 10 for _ in range(DIGIT_COUNT)]
    size = 0
    for record in window_records:
        number = winning_digits(record)
        size += 1
        for position in range(DIGIT_COUNT):
            counts[position][digit_at(number, position)] += 1
    return FrequencyTable(counts=tuple(tuple(row) for row in counts), window_size=size)
