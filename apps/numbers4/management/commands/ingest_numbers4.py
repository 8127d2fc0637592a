from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from ...services.ingestion import ingest_draws
from ...services.sources.base import ScrapeError
from ...services.sources.registry import get_enabled_adapters
from ...services.store import StoreUnavailable


class Command(BaseCommand):
    help = 'Ingest Numbers4 draw results from configured data sources.'

    def add_arguments(self, parser):
        parser.add_argument('--source', action='append', dest='sources', help='Source key; repeat to set priority order')
        parser.add_argument('--retention', type=int, help='Maximum number of draws to keep')
        parser.add_argument('--max-pages', type=int, help='Max pages to fetch per source')
        parser.add_argument('--full', action='store_true', help='Ignore the latest stored draw and fetch from the start')

    def handle(self, *args, **options):
        try:
            adapters = get_enabled_adapters(options.get('sources'))
        except ScrapeError as exc:
            raise CommandError(f"{exc} ({exc.source})") from exc
        if not adapters:
            raise CommandError('No data sources enabled')

        try:
            report = ingest_draws(
                adapters,
                retention_limit=options.get('retention'),
                max_pages=options.get('max_pages'),
                incremental=not options.get('full'),
            )
        except StoreUnavailable as exc:
            raise CommandError(f"Result store unavailable: {exc.detail or exc}") from exc

        for name, reason in report.failed_sources:
            self.stderr.write(self.style.WARNING(f"Source {name} failed: {reason}"))
        style = self.style.SUCCESS if report.status == 'success' else self.style.WARNING
        self.stdout.write(style(report.message))
