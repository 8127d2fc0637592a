from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from django.conf import settings


@dataclass(frozen=True)
class PipelineConfig:
    data_sources: dict
    retention_limit: int = 150
    analysis_window: int = 100
    prediction_batch_size: int = 10
    random_batch_size: int = 12
    request_timeout: float = 15.0
    request_delay: float = 1.0
    max_pages: int = 3
    backtest_draws: int = 10
    holidays: frozenset[date] = field(default_factory=frozenset)


def get_pipeline_config() -> PipelineConfig:
    config = getattr(settings, 'NUMBERS4_CONFIG', {})
    return PipelineConfig(
        data_sources=dict(config.get('DATA_SOURCES', {})),
        retention_limit=int(config.get('RETENTION_LIMIT', 150)),
        analysis_window=int(config.get('ANALYSIS_WINDOW', 100)),
        prediction_batch_size=int(config.get('PREDICTION_BATCH_SIZE', 10)),
        random_batch_size=int(config.get('RANDOM_BATCH_SIZE', 12)),
        request_timeout=float(config.get('REQUEST_TIMEOUT', 15)),
        request_delay=float(config.get('REQUEST_DELAY', 1.0)),
        max_pages=int(config.get('MAX_PAGES', 3)),
        backtest_draws=int(config.get('BACKTEST_DRAWS', 10)),
        holidays=frozenset(date.fromisoformat(day.strip()) for day in config.get('HOLIDAYS', []) if day.strip()),
    )
