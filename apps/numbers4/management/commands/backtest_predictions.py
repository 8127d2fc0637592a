from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from ...services.backtest import BOX, STRAIGHT, run_backtest
from ...services.store import StoreUnavailable


class Command(BaseCommand):
    help = 'Replay frequency predictions against the most recent stored draws.'

    def add_arguments(self, parser):
        parser.add_argument('--draws', type=int, help='Number of recent draws to test')
        parser.add_argument('--window', type=int, help='Number of preceding draws each prediction sees')

    def handle(self, *args, **options):
        try:
            report = run_backtest(draws=options.get('draws'), window=options.get('window'))
        except StoreUnavailable as exc:
            raise CommandError(f"Result store unavailable: {exc.detail or exc}") from exc

        for detail in report.details:
            matched = f" <- {', '.join(detail.matched)}" if detail.matched else ''
            self.stdout.write(f"#{detail.draw_number} {detail.winning_number} {detail.outcome}{matched}")
        observed = report.observed
        baseline = report.baseline
        self.stdout.write(
            self.style.SUCCESS(
                f"Evaluated {report.evaluated} draws: straight {report.straight_hits}, box {report.box_hits}, "
                f"miss {report.misses}"
            )
        )
        self.stdout.write(
            f"Observed straight {observed[STRAIGHT]:.4%} box {observed[BOX]:.4%}; "
            f"chance straight {baseline[STRAIGHT]:.4%} box {baseline[BOX]:.4%}"
        )
