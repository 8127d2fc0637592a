from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from ...services.predictions import InsufficientData, PredictionAlreadyExists, generate_prediction_set
from ...services.store import StoreUnavailable


class Command(BaseCommand):
    help = 'Generate the prediction set for the next (or a given) draw.'

    def add_arguments(self, parser):
        parser.add_argument('--draw-number', type=int, help='Target draw number; defaults to latest stored + 1')
        parser.add_argument('--window', type=int, help='Number of preceding draws to analyse')
        parser.add_argument('--force', action='store_true', help='Replace an existing prediction set')

    def handle(self, *args, **options):
        try:
            prediction = generate_prediction_set(
                draw_number=options.get('draw_number'),
                window=options.get('window'),
                force=bool(options.get('force')),
            )
        except PredictionAlreadyExists as exc:
            self.stdout.write(self.style.WARNING(str(exc)))
            return
        except InsufficientData as exc:
            raise CommandError(str(exc)) from exc
        except StoreUnavailable as exc:
            raise CommandError(f"Result store unavailable: {exc.detail or exc}") from exc

        self.stdout.write(self.style.SUCCESS(f"Draw {prediction.draw_number} ({prediction.draw_date:%Y-%m-%d})"))
        for name, values in prediction.candidates.items():
            self.stdout.write(f"  {name}: {' '.join(values)}")
