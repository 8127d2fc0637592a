from __future__ import annotations

import re
from datetime import date
from typing import Iterator, List, Optional

from bs4 import BeautifulSoup
from django.utils import timezone

from .base import (
    PageFetcher,
    PageNotFound,
    RawCandidate,
    SourceUnavailable,
    extract_winning_number,
    logger,
    parse_date,
)

# Archive pages hold exactly this many consecutive draws: page 1 is draws
# 1-20, page 2 is draws 21-40 and so on. Draw numbers are not printed, so
# they are derived from the page number and the row's position on the page.
BLOCK_SIZE = 20

MONTH_DAY_PATTERN = re.compile(r'(\d{1,2})月\s*(\d{1,2})日')
MONTHLY_DRAW_PATTERN = re.compile(r'第?\s*(\d{4,})\s*回?')


class MizuhoBacknumberAdapter:
    """Fixed-size archive blocks ``numNNNN.html`` with offset-derived draw numbers."""

    name = 'mizuho_backnumber'

    def __init__(self, base_url: str, fetcher: PageFetcher | None = None):
        self.base_url = base_url if base_url.endswith('/') else f"{base_url}/"
        self.fetcher = fetcher or PageFetcher(self.name)

    def page_url(self, page: int) -> str:
        return f"{self.base_url}num{page:04d}.html"

    @staticmethod
    def page_for_draw(draw_number: int) -> int:
        return (max(draw_number, 1) - 1) // BLOCK_SIZE + 1

    def fetch_candidates(self, since_draw: Optional[int] = None, max_pages: Optional[int] = None) -> List[RawCandidate]:
        # Page 1 holds the first 1994 draws; only a known draw number locates the recent pages.
        if since_draw is None:
            raise SourceUnavailable('Archive pages need a starting draw number', self.name, 'Run incrementally')
        first_page = self.page_for_draw(since_draw + 1)
        max_pages = max_pages or 1
        candidates: List[RawCandidate] = []
        for page in range(first_page, first_page + max_pages):
            try:
                html = self.fetcher.get(self.page_url(page))
            except SourceUnavailable as exc:
                if page == first_page:
                    raise
                if not isinstance(exc, PageNotFound):
                    logger.warning('Mizuho archive page %s fetch failed: %s', page, exc)
                break
            page_candidates, rows = self.parse_page(html, page)
            if not rows:
                if page == first_page:
                    raise SourceUnavailable('No draws parsed from archive page', self.name, 'Check table structure')
                break
            candidates.extend(page_candidates)
            if rows < BLOCK_SIZE:
                break
        return candidates

    def parse_candidates(self, html: str, page: int) -> List[RawCandidate]:
        return self.parse_page(html, page)[0]

    def parse_page(self, html: str, page: int) -> tuple[List[RawCandidate], int]:
        """Candidates on an archive page and the number of draw rows seen, parsed or not."""
        soup = BeautifulSoup(html, 'html.parser')
        table = soup.find('table')
        if table is None:
            return [], 0
        candidates: List[RawCandidate] = []
        offset = 0
        for index, row in enumerate(table.find_all('tr')):
            cells = row.find_all('td')
            # The first row is the header; data rows carry date, Numbers3 and Numbers4 cells.
            if index == 0 or len(cells) != 3:
                continue
            offset += 1
            if offset > BLOCK_SIZE:
                logger.warning('Archive page %s has more than %s rows, ignoring the rest', page, BLOCK_SIZE)
                offset = BLOCK_SIZE
                break
            draw_date = parse_date(cells[0].get_text(' ', strip=True))
            winning_number = extract_winning_number(cells[2].get_text(' ', strip=True))
            if draw_date is None or winning_number is None:
                logger.debug('Skipping archive row %s on page %s', offset, page)
                continue
            candidates.append(
                RawCandidate(
                    draw_number=(page - 1) * BLOCK_SIZE + offset,
                    draw_date=draw_date,
                    winning_number=winning_number,
                    source=self.name,
                    source_url=self.page_url(page),
                )
            )
        return candidates, offset


class MizuhoMonthlyAdapter:
    """Month-indexed archive ``num4-YYYYMM.html`` with labelled draw numbers."""

    name = 'mizuho_monthly'

    def __init__(self, base_url: str, fetcher: PageFetcher | None = None, today: date | None = None):
        self.base_url = base_url if base_url.endswith('/') else f"{base_url}/"
        self.fetcher = fetcher or PageFetcher(self.name)
        self.today = today

    def page_url(self, year: int, month: int) -> str:
        return f"{self.base_url}num4-{year:04d}{month:02d}.html"

    def months(self, count: int) -> Iterator[tuple[int, int]]:
        current = self.today or timezone.localdate()
        year, month = current.year, current.month
        for _ in range(count):
            yield year, month
            year, month = (year, month - 1) if month > 1 else (year - 1, 12)

    def fetch_candidates(self, since_draw: Optional[int] = None, max_pages: Optional[int] = None) -> List[RawCandidate]:
        candidates: List[RawCandidate] = []
        failures = 0
        attempted = 0
        for year, month in self.months(max_pages or 1):
            attempted += 1
            try:
                html = self.fetcher.get(self.page_url(year, month))
            except SourceUnavailable as exc:
                # The current month's page is not published until its first draw.
                logger.warning('Mizuho monthly %04d-%02d fetch failed: %s', year, month, exc)
                failures += 1
                continue
            month_candidates = self.parse_candidates(html, year, month)
            candidates.extend(month_candidates)
            numbers = [c.draw_number for c in month_candidates if c.draw_number is not None]
            if since_draw is not None and numbers and min(numbers) <= since_draw:
                break
        if not candidates and failures == attempted:
            raise SourceUnavailable('All monthly archive pages failed', self.name, f'{failures} page(s)')
        return candidates

    def parse_candidates(self, html: str, year: int, month: int) -> List[RawCandidate]:
        soup = BeautifulSoup(html, 'html.parser')
        candidates: List[RawCandidate] = []
        for row in soup.select('table tr'):
            cells = [cell.get_text(' ', strip=True) for cell in row.find_all(['th', 'td'])]
            if len(cells) < 3:
                continue
            label = MONTHLY_DRAW_PATTERN.search(cells[0])
            day = MONTH_DAY_PATTERN.search(cells[1])
            winning_number = extract_winning_number(cells[2])
            if not label or not day or winning_number is None:
                continue
            draw_date = self._draw_date(year, month, int(day.group(1)), int(day.group(2)))
            if draw_date is None:
                continue
            candidates.append(
                RawCandidate(
                    draw_number=int(label.group(1)),
                    draw_date=draw_date,
                    winning_number=winning_number,
                    source=self.name,
                    source_url=self.page_url(year, month),
                )
            )
        return candidates

    def _draw_date(self, year: int, page_month: int, month: int, day: int) -> date | None:
        # A January page may list the last December draw of the previous year.
        if page_month == 1 and month == 12:
            year -= 1
        try:
            return date(year, month, day)
        except ValueError as exc:
            logger.debug('Invalid monthly date %s/%s/%s: %s', year, month, day, exc)
            return None
