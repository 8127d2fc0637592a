from datetime import date, timedelta
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from apps.numbers4.models import DrawResult, IngestionLog
from apps.numbers4.services.sources.base import RawCandidate, SourceUnavailable
from apps.numbers4.services.store import StoreUnavailable

INGEST = 'apps.numbers4.management.commands.ingest_numbers4'


class FakeAdapter:
    def __init__(self, name, numbers=(), error=None):
        self.name = name
        self.numbers = numbers
        self.error = error

    def fetch_candidates(self, since_draw=None, max_pages=None):
        if self.error:
            raise self.error
        return [
            RawCandidate(
                draw_number=number,
                draw_date=date(2025, 6, 1) + timedelta(days=number % 30),
                winning_number=f'{number:04d}',
                source=self.name,
            )
            for number in self.numbers
        ]


class IngestCommandTests(TestCase):
    def test_ingests_from_enabled_adapters(self):
        adapters = [
            FakeAdapter('renban', numbers=range(1, 6)),
            FakeAdapter('mizuho_monthly', error=SourceUnavailable('Failed to fetch data', 'mizuho_monthly', '503')),
        ]
        out, err = StringIO(), StringIO()
        with mock.patch(f'{INGEST}.get_enabled_adapters', return_value=adapters):
            call_command('ingest_numbers4', '--retention', '3', stdout=out, stderr=err)
        assert DrawResult.objects.count() == 3
        assert 'inserted 5' in out.getvalue()
        assert 'trimmed 2' in out.getvalue()
        assert 'mizuho_monthly' in err.getvalue()
        assert IngestionLog.objects.get().status == 'partial'

    def test_source_option_is_passed_through(self):
        with mock.patch(f'{INGEST}.get_enabled_adapters', return_value=[FakeAdapter('renban')]) as registry:
            call_command('ingest_numbers4', '--source', 'renban', '--source', 'mizuho_monthly', stdout=StringIO())
        registry.assert_called_once_with(['renban', 'mizuho_monthly'])

    def test_unknown_source_is_command_error(self):
        with self.assertRaises(CommandError):
            call_command('ingest_numbers4', '--source', 'nowhere', stdout=StringIO())

    def test_store_failure_is_command_error(self):
        with mock.patch(f'{INGEST}.get_enabled_adapters', return_value=[FakeAdapter('renban')]), \
                mock.patch(f'{INGEST}.ingest_draws', side_effect=StoreUnavailable('Store unavailable', 'disk I/O error')):
            with self.assertRaises(CommandError) as ctx:
                call_command('ingest_numbers4', stdout=StringIO())
        assert 'disk I/O error' in str(ctx.exception)


class PredictionCommandTests(TestCase):
    def setUp(self):
        for number in range(1, 11):
            DrawResult.objects.create(
                draw_number=number,
                draw_date=date(2025, 6, 2) + timedelta(days=number),
                winning_number=f'{number * 1111 % 10000:04d}',
            )

    def test_generate_then_warn_on_existing(self):
        out = StringIO()
        call_command('generate_predictions', stdout=out)
        assert 'Draw 11' in out.getvalue()
        assert 'frequency:' in out.getvalue()

        again = StringIO()
        call_command('generate_predictions', stdout=again)
        assert 'already exist' in again.getvalue()

    def test_generate_without_data_is_command_error(self):
        DrawResult.objects.all().delete()
        with self.assertRaises(CommandError):
            call_command('generate_predictions', stdout=StringIO())

    def test_backtest_reports_chance_rates(self):
        out = StringIO()
        call_command('backtest_predictions', '--draws', '3', '--window', '5', stdout=out)
        assert 'Evaluated 3 draws' in out.getvalue()
        assert 'chance straight' in out.getvalue()
