from datetime import date, timedelta
from unittest import mock

from django.test import TestCase

from apps.numbers4.models import DrawResult, IngestionLog
from apps.numbers4.services.ingestion import IngestionCoordinator, validate_candidate
from apps.numbers4.services.sources.base import RawCandidate, SourceUnavailable
from apps.numbers4.services.sources.mizuho import MizuhoBacknumberAdapter

TODAY = date(2025, 7, 10)


def candidate(draw_number, winning_number='1234', source='fake', draw_date=None):
    return RawCandidate(
        draw_number=draw_number,
        draw_date=draw_date or date(2025, 1, 1) + timedelta(days=(draw_number or 0) % 180),
        winning_number=winning_number,
        source=source,
    )


class StaticAdapter:
    def __init__(self, name, candidates):
        self.name = name
        self.candidates = candidates
        self.calls = []

    def fetch_candidates(self, since_draw=None, max_pages=None):
        self.calls.append((since_draw, max_pages))
        return list(self.candidates)


class FailingAdapter:
    name = 'down'

    def fetch_candidates(self, since_draw=None, max_pages=None):
        raise SourceUnavailable('Failed to fetch data', self.name, 'connection refused')


class ValidateCandidateTests(TestCase):
    def test_rejects_malformed(self):
        assert validate_candidate(candidate(1, '123'), TODAY)[0] is False
        assert validate_candidate(candidate(1, '12a4'), TODAY)[0] is False
        assert validate_candidate(candidate(None), TODAY)[0] is False
        assert validate_candidate(candidate(0), TODAY)[0] is False
        assert validate_candidate(candidate(1, draw_date=date(1990, 1, 1)), TODAY)[0] is False
        assert validate_candidate(candidate(1, draw_date=date(2025, 8, 1)), TODAY)[0] is False
        assert validate_candidate(RawCandidate(5, None, '1234', 'fake'), TODAY)[0] is False

    def test_accepts_well_formed(self):
        assert validate_candidate(candidate(6764, '0181', draw_date=date(2025, 7, 8)), TODAY) == (True, '')


class IngestionCoordinatorTests(TestCase):
    def coordinator(self, retention=150):
        return IngestionCoordinator(retention_limit=retention, max_pages=2, today=TODAY)

    def test_overlap_keeps_first_source_in_priority_order(self):
        first = StaticAdapter('renban', [candidate(100, '1111', 'renban'), candidate(101, '2222', 'renban')])
        second = StaticAdapter('mizuho_monthly', [candidate(101, '9999', 'mizuho_monthly'), candidate(102, '3333', 'mizuho_monthly')])
        report = self.coordinator().run([first, second])
        assert report.inserted == 3
        assert report.duplicates == 1
        stored = DrawResult.objects.get(draw_number=101)
        assert stored.winning_number == '2222'
        assert stored.source == 'renban'

    def test_failed_source_does_not_stop_others(self):
        good = StaticAdapter('renban', [candidate(1), candidate(2)])
        report = self.coordinator().run([FailingAdapter(), good])
        assert report.inserted == 2
        assert report.failed_sources[0][0] == 'down'
        assert 'connection refused' in report.failed_sources[0][1]
        assert report.status == 'partial'

    def test_all_sources_failing_is_reported_not_raised(self):
        report = self.coordinator().run([FailingAdapter()])
        assert report.inserted == 0
        assert report.status == 'failed'
        assert IngestionLog.objects.get().status == 'failed'

    def test_malformed_candidates_are_skipped(self):
        adapter = StaticAdapter('renban', [candidate(1, '12345'), candidate(2, 'abcd'), candidate(3, '0042')])
        report = self.coordinator().run([adapter])
        assert report.skipped == 2
        assert report.inserted == 1
        assert DrawResult.objects.get().winning_number == '0042'

    def test_second_run_is_a_noop(self):
        adapter = StaticAdapter('renban', [candidate(n, f'{n:04d}') for n in range(1, 11)])
        self.coordinator().run([adapter])
        before = list(DrawResult.objects.order_by('draw_number').values_list('draw_number', 'winning_number'))
        report = self.coordinator().run([adapter])
        after = list(DrawResult.objects.order_by('draw_number').values_list('draw_number', 'winning_number'))
        assert report.inserted == 0
        assert report.trimmed == 0
        assert before == after

    def test_retention_ceiling_trims_oldest(self):
        adapter = StaticAdapter('renban', [candidate(n) for n in range(1, 31)])
        report = self.coordinator(retention=25).run([adapter])
        assert report.inserted == 30
        assert report.trimmed == 5
        assert DrawResult.objects.count() == 25
        assert min(DrawResult.objects.values_list('draw_number', flat=True)) == 6

        again = self.coordinator(retention=25).run([adapter])
        assert again.inserted == 0
        assert again.stale == 5
        assert again.trimmed == 0
        assert DrawResult.objects.count() == 25

    def test_incremental_run_passes_latest_draw(self):
        first = StaticAdapter('renban', [candidate(40)])
        self.coordinator().run([first])
        second = StaticAdapter('renban', [])
        self.coordinator().run([second])
        assert second.calls == [(40, 2)]
        full = StaticAdapter('renban', [])
        self.coordinator().run([full], incremental=False)
        assert full.calls == [(None, 2)]

    def test_run_writes_ingestion_log(self):
        self.coordinator().run([StaticAdapter('renban', [candidate(1)])])
        log = IngestionLog.objects.get()
        assert log.status == 'success'
        assert log.draws_inserted == 1
        assert log.sources == 'renban'

    def test_archive_source_waits_for_a_known_draw(self):
        fetcher = mock.Mock()
        fetcher.get.return_value = '<table><tr><td>抽せん日</td></tr>'\
            '<tr><td>1994年10月07日</td><td>191</td><td>5526</td></tr></table>'
        archive = MizuhoBacknumberAdapter('https://example.com/backnumber', fetcher=fetcher)
        report = self.coordinator().run([archive])
        assert report.inserted == 0
        assert report.failed_sources[0][0] == 'mizuho_backnumber'
        assert not DrawResult.objects.exists()
        fetcher.get.assert_not_called()

        self.coordinator().run([StaticAdapter('renban', [candidate(6764, draw_date=date(2025, 7, 8))])])
        fetcher.get.reset_mock()
        self.coordinator().run([archive])
        fetcher.get.assert_called_once_with('https://example.com/backnumber/num0339.html')

    def test_message_reports_stale_candidates(self):
        adapter = StaticAdapter('renban', [candidate(n) for n in range(1, 6)])
        self.coordinator(retention=3).run([adapter])
        report = self.coordinator(retention=3).run([adapter])
        assert report.stale == 2
        assert 'stale 2' in report.message
        log = IngestionLog.objects.order_by('-pk').first()
        assert log.draws_stale == 2
        assert 'stale 2' in log.message
