from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import logging
import re
import time
from typing import List, Optional, Protocol

import requests
from dateutil import parser as date_parser

DEFAULT_HEADERS = {
    'User-Agent': (
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) '
        'AppleWebKit/537.36 (KHTML, like Gecko) '
        'Chrome/123.0 Safari/537.36'
    ),
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'ja,en-US;q=0.7,en;q=0.3',
}

WINNING_PATTERN = re.compile(r'(?<!\d)(\d{4})(?!\d)')
DRAW_LABEL_PATTERN = re.compile(r'第\s*(\d+)\s*回')
JP_DATE_PATTERN = re.compile(r'(\d{4})年\s*(\d{1,2})月\s*(\d{1,2})日')
ISO_DATE_PATTERN = re.compile(r'\d{4}-\d{2}-\d{2}')
AMOUNT_PATTERN = re.compile(r'\d[\d,]*')

logger = logging.getLogger('numbers4')


class ScrapeError(RuntimeError):
    def __init__(self, message: str, source: str, detail: str | None = None):
        super().__init__(message)
        self.source = source
        self.detail = detail or ''


class SourceUnavailable(ScrapeError):
    """A source could not be reached or returned no recognisable data."""


class PageNotFound(SourceUnavailable):
    pass


@dataclass(frozen=True)
class RawCandidate:
    draw_number: Optional[int]
    draw_date: Optional[date]
    winning_number: Optional[str]
    source: str
    source_url: str = ''
    straight_winners: Optional[int] = None
    straight_amount: Optional[int] = None
    box_winners: Optional[int] = None
    box_amount: Optional[int] = None
    sales_amount: Optional[int] = None


class SourceAdapter(Protocol):
    name: str

    def fetch_candidates(self, since_draw: Optional[int] = None, max_pages: Optional[int] = None) -> List[RawCandidate]:
        ...


class PageFetcher:
    """HTTP GET with a per-request timeout and a polite delay between requests."""

    def __init__(self, source: str, timeout: float = 15.0, delay: float = 1.0, headers: dict | None = None):
        self.source = source
        self.timeout = timeout
        self.delay = delay
        self.headers = headers or DEFAULT_HEADERS
        self._last_request: Optional[float] = None

    def get(self, url: str) -> str:
        self._wait()
        logger.info('Fetching %s from %s', self.source, url)
        try:
            response = requests.get(url, timeout=self.timeout, headers=self.headers)
            self._last_request = time.monotonic()
            if response.status_code == 404:
                raise PageNotFound('Page not found', self.source, url)
            response.raise_for_status()
        except requests.RequestException as exc:
            self._last_request = time.monotonic()
            raise SourceUnavailable('Failed to fetch data', self.source, str(exc)) from exc
        if response.encoding is None or response.encoding.lower() == 'iso-8859-1':
            response.encoding = response.apparent_encoding
        return response.text

    def _wait(self) -> None:
        if self._last_request is None or self.delay <= 0:
            return
        remaining = self.delay - (time.monotonic() - self._last_request)
        if remaining > 0:
            time.sleep(remaining)


def extract_winning_number(text: str) -> Optional[str]:
    match = WINNING_PATTERN.search(text.replace('\xa0', ' '))
    return match.group(1) if match else None


def extract_draw_label(text: str) -> Optional[int]:
    match = DRAW_LABEL_PATTERN.search(text)
    return int(match.group(1)) if match else None


def extract_amount(text: str) -> Optional[int]:
    match = AMOUNT_PATTERN.search(text)
    if not match:
        return None
    return int(match.group(0).replace(',', ''))


def parse_date(text: str) -> Optional[date]:
    text = text.replace('\xa0', ' ').strip()
    match = JP_DATE_PATTERN.search(text)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError as exc:
            logger.debug('Invalid date parts %s: %s', match.group(0), exc)
            return None
    match = ISO_DATE_PATTERN.search(text)
    if not match:
        return None
    try:
        return date_parser.parse(match.group(0)).date()
    except (ValueError, OverflowError) as exc:
        logger.debug('Failed to parse date from %s: %s', text, exc)
        return None
