import django.core.validators
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='DrawResult',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('draw_number', models.PositiveIntegerField(unique=True)),
                ('draw_date', models.DateField(db_index=True)),
                ('winning_number', models.CharField(max_length=4, validators=[django.core.validators.RegexValidator('^\\d{4}$', 'Winning number must be exactly 4 digits.')])),
                ('straight_winners', models.PositiveIntegerField(default=0)),
                ('straight_amount', models.PositiveIntegerField(default=0)),
                ('box_winners', models.PositiveIntegerField(default=0)),
                ('box_amount', models.PositiveIntegerField(default=0)),
                ('sales_amount', models.PositiveBigIntegerField(blank=True, null=True)),
                ('source', models.CharField(blank=True, max_length=32)),
                ('source_url', models.URLField(blank=True)),
                ('fetched_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'ordering': ['-draw_number'],
            },
        ),
        migrations.CreateModel(
            name='PredictionSet',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('draw_number', models.PositiveIntegerField(unique=True)),
                ('draw_date', models.DateField(db_index=True)),
                ('window', models.PositiveIntegerField(default=0)),
                ('candidates', models.JSONField(default=dict)),
                ('generated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('view_count', models.PositiveIntegerField(default=0)),
            ],
            options={
                'ordering': ['-draw_number'],
            },
        ),
        migrations.CreateModel(
            name='IngestionLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('run_at', models.DateTimeField(auto_now_add=True)),
                ('status', models.CharField(choices=[('success', 'Success'), ('partial', 'Partial'), ('failed', 'Failed')], max_length=16)),
                ('sources', models.CharField(blank=True, max_length=255)),
                ('message', models.TextField(blank=True)),
                ('draws_inserted', models.PositiveIntegerField(default=0)),
                ('draws_skipped', models.PositiveIntegerField(default=0)),
                ('draws_duplicate', models.PositiveIntegerField(default=0)),
                ('draws_stale', models.PositiveIntegerField(default=0)),
                ('draws_trimmed', models.PositiveIntegerField(default=0)),
            ],
            options={
                'ordering': ['-run_at'],
            },
        ),
    ]
