from django.core.validators import RegexValidator
from django.db import models
from django.utils import timezone

winning_number_validator = RegexValidator(r'^\d{4}$', 'Winning number must be exactly 4 digits.')


class DrawResult(models.Model):
    draw_number = models.PositiveIntegerField(unique=True)
    draw_date = models.DateField(db_index=True)
    winning_number = models.CharField(max_length=4, validators=[winning_number_validator])
    straight_winners = models.PositiveIntegerField(default=0)
    straight_amount = models.PositiveIntegerField(default=0)
    box_winners = models.PositiveIntegerField(default=0)
    box_amount = models.PositiveIntegerField(default=0)
    sales_amount = models.PositiveBigIntegerField(null=True, blank=True)
    source = models.CharField(max_length=32, blank=True)
    source_url = models.URLField(blank=True)
    fetched_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-draw_number']

    def __str__(self) -> str:
        return f"#{self.draw_number} {self.draw_date}: {self.winning_number}"

    @property
    def prize(self) -> dict:
        return {
            'straight': {'winners': self.straight_winners, 'amount': self.straight_amount},
            'box': {'winners': self.box_winners, 'amount': self.box_amount},
        }


class PredictionSet(models.Model):
    draw_number = models.PositiveIntegerField(unique=True)
    draw_date = models.DateField(db_index=True)
    window = models.PositiveIntegerField(default=0)
    candidates = models.JSONField(default=dict)
    generated_at = models.DateTimeField(default=timezone.now)
    view_count = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['-draw_number']

    def __str__(self) -> str:
        total = sum(len(values) for values in self.candidates.values())
        return f"#{self.draw_number} {self.draw_date}: {total} predictions"

    def all_predictions(self) -> list[str]:
        seen: dict[str, None] = {}
        for values in self.candidates.values():
            for value in values:
                seen.setdefault(value, None)
        return list(seen)


class IngestionLog(models.Model):
    STATUS_CHOICES = [
        ('success', 'Success'),
        ('partial', 'Partial'),
        ('failed', 'Failed'),
    ]

    run_at = models.DateTimeField(auto_now_add=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES)
    sources = models.CharField(max_length=255, blank=True)
    message = models.TextField(blank=True)
    draws_inserted = models.PositiveIntegerField(default=0)
    draws_skipped = models.PositiveIntegerField(default=0)
    draws_duplicate = models.PositiveIntegerField(default=0)
    draws_stale = models.PositiveIntegerField(default=0)
    draws_trimmed = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['-run_at']

    def __str__(self) -> str:
        return f"{self.run_at:%Y-%m-%d %H:%M} {self.status} {self.sources}"
