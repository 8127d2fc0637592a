from __future__ import annotations

from typing import List, Optional

from ..config import PipelineConfig, get_pipeline_config
from .base import PageFetcher, ScrapeError, SourceAdapter
from .mizuho import MizuhoBacknumberAdapter, MizuhoMonthlyAdapter
from .renban import RenbanDetailAdapter, RenbanListAdapter

ADAPTERS = {
    'renban': RenbanListAdapter,
    'renban_detail': RenbanDetailAdapter,
    'mizuho_backnumber': MizuhoBacknumberAdapter,
    'mizuho_monthly': MizuhoMonthlyAdapter,
}


def build_adapter(name: str, url: str, config: PipelineConfig) -> SourceAdapter:
    adapter_cls = ADAPTERS.get(name)
    if adapter_cls is None:
        raise ScrapeError('Unknown data source', name, 'Check NUMBERS4_CONFIG')
    fetcher = PageFetcher(name, timeout=config.request_timeout, delay=config.request_delay)
    return adapter_cls(url, fetcher=fetcher)


def get_enabled_adapters(
    names: Optional[List[str]] = None,
    config: PipelineConfig | None = None,
) -> List[SourceAdapter]:
    """Adapters in priority order.

    ``names`` selects and orders a subset explicitly; a named source runs
    even if it is disabled in settings.
    """
    config = config or get_pipeline_config()
    sources = config.data_sources
    if names:
        missing = [name for name in names if name not in sources]
        if missing:
            raise ScrapeError('Requested source not configured', ','.join(missing), 'Check NUMBERS4_CONFIG')
        return [build_adapter(name, sources[name]['url'], config) for name in names]

    enabled = []
    for name, info in sources.items():
        if not info.get('enabled', True):
            continue
        if name not in ADAPTERS:
            continue
        enabled.append(build_adapter(name, info['url'], config))
    return enabled
