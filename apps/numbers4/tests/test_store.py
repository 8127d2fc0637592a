from datetime import date, timedelta
from unittest import mock

from django.db import OperationalError
from django.db.models import QuerySet
from django.test import TestCase

from apps.numbers4.models import DrawResult
from apps.numbers4.services.store import NormalizedDraw, ResultStore, StoreUnavailable


def make_draw(draw_number: int, winning_number: str = '1234', **extra) -> NormalizedDraw:
    return NormalizedDraw(
        draw_number=draw_number,
        draw_date=date(2025, 1, 6) + timedelta(days=draw_number),
        winning_number=winning_number,
        **extra,
    )


class ResultStoreTests(TestCase):
    def setUp(self):
        self.store = ResultStore()

    def test_upsert_is_insert_only(self):
        assert self.store.upsert_if_absent(make_draw(10, '5358', source='renban')) is True
        assert self.store.upsert_if_absent(make_draw(10, '0000', source='mizuho_monthly')) is False
        assert self.store.count() == 1
        stored = self.store.find_by_number(10)
        assert stored.winning_number == '5358'
        assert stored.source == 'renban'

    def test_prize_sub_records(self):
        self.store.upsert_if_absent(make_draw(11, straight_winners=87, straight_amount=1018700))
        prize = self.store.find_by_number(11).prize
        assert prize['straight'] == {'winners': 87, 'amount': 1018700}
        assert prize['box'] == {'winners': 0, 'amount': 0}

    def test_latest_is_sorted_by_draw_number_descending(self):
        for number in (5, 9, 1, 7):
            self.store.upsert_if_absent(make_draw(number))
        assert [d.draw_number for d in self.store.latest(3)] == [9, 7, 5]
        assert self.store.latest_draw_number() == 9

    def test_trim_keeps_most_recent(self):
        for number in range(1, 21):
            self.store.upsert_if_absent(make_draw(number))
        deleted = self.store.trim_to_ceiling(15)
        assert deleted == 5
        assert self.store.count() == 15
        remaining = sorted(DrawResult.objects.values_list('draw_number', flat=True))
        assert remaining == list(range(6, 21))

    def test_trim_below_ceiling_is_noop(self):
        for number in range(1, 4):
            self.store.upsert_if_absent(make_draw(number))
        assert self.store.trim_to_ceiling(150) == 0
        assert self.store.trim_to_ceiling(3) == 0
        assert self.store.count() == 3

    def test_range_before_excludes_target(self):
        for number in (100, 102, 105, 106, 110):
            self.store.upsert_if_absent(make_draw(number))
        window = self.store.range_before(106, 2)
        assert [d.draw_number for d in window] == [105, 102]
        assert self.store.range_before(100, 10) == []

    def test_database_errors_become_store_unavailable(self):
        with mock.patch.object(DrawResult.objects, 'count', side_effect=OperationalError('no such table')):
            with self.assertRaises(StoreUnavailable) as ctx:
                self.store.count()
        assert 'no such table' in ctx.exception.detail

    def test_losing_concurrent_insert_reports_not_inserted(self):
        self.store.upsert_if_absent(make_draw(1))
        original_get = QuerySet.get
        calls = []

        def racing_get(queryset, *args, **kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                # Another writer stores the draw between the lookup and the insert.
                DrawResult.objects.create(draw_number=30, draw_date=date(2025, 3, 1), winning_number='1111')
                raise DrawResult.DoesNotExist
            return original_get(queryset, *args, **kwargs)

        with mock.patch.object(QuerySet, 'get', autospec=True, side_effect=racing_get):
            inserted = self.store.upsert_if_absent(make_draw(30, '9999', source='mizuho_monthly'))
        assert inserted is False
        assert len(calls) == 2
        assert self.store.count() == 2
        assert self.store.find_by_number(30).winning_number == '1111'
