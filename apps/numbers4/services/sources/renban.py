from __future__ import annotations

import re
from typing import List, Optional

from bs4 import BeautifulSoup

from .base import (
    PageFetcher,
    PageNotFound,
    RawCandidate,
    SourceUnavailable,
    extract_amount,
    extract_draw_label,
    logger,
    parse_date,
)

RESULT_LINK_PATTERN = re.compile(r'/result/(\d+)/?$')
DETAIL_DATE_PATTERN = re.compile(r'抽選日[:：]\s*(\d{4})年(\d{1,2})月(\d{1,2})日')
DETAIL_NUMBER_PATTERN = re.compile(r'抽選日[:：][^)）]*[)）][\s\S]*?(?<!\d)(\d{4})(?!\d)')
TAGGED_NUMBER_PATTERN = re.compile(r'>\s*(\d{4})\s*<')
PAGE_SIZE = 20


class RenbanListAdapter:
    """Paginated result list, newest first, one draw per table row."""

    name = 'renban'

    def __init__(self, base_url: str, fetcher: PageFetcher | None = None):
        self.base_url = base_url
        self.fetcher = fetcher or PageFetcher(self.name)

    def page_url(self, page: int) -> str:
        return f"{self.base_url}?s=desc&l={PAGE_SIZE}&page={page}"

    def fetch_candidates(self, since_draw: Optional[int] = None, max_pages: Optional[int] = None) -> List[RawCandidate]:
        max_pages = max_pages or 1
        candidates: List[RawCandidate] = []
        for page in range(1, max_pages + 1):
            url = self.page_url(page)
            try:
                html = self.fetcher.get(url)
            except SourceUnavailable as exc:
                if page == 1:
                    raise
                logger.warning('Renban page %s fetch failed: %s', page, exc)
                break
            page_candidates = self.parse_candidates(html, url)
            if not page_candidates:
                if page == 1:
                    raise SourceUnavailable('No draws parsed from result list', self.name, 'Check table structure')
                break
            candidates.extend(page_candidates)
            numbers = [c.draw_number for c in page_candidates if c.draw_number is not None]
            if since_draw is not None and numbers and min(numbers) <= since_draw:
                break
        return candidates

    def parse_candidates(self, html: str, source_url: str = '') -> List[RawCandidate]:
        soup = BeautifulSoup(html, 'html.parser')
        rows = soup.select('table.table-striped tr') or soup.select('table tr')
        candidates: List[RawCandidate] = []
        for row in rows:
            cells = row.find_all('td')
            if len(cells) < 3:
                continue
            draw_number = self._draw_number(cells[0])
            draw_date = parse_date(cells[1].get_text(' ', strip=True))
            number_link = cells[2].find('a')
            number_text = (number_link or cells[2]).get_text(strip=True)
            winning_number = number_text if len(number_text) == 4 and number_text.isdigit() else None
            if draw_number is None or draw_date is None or winning_number is None:
                logger.debug('Skipping renban row: %s', row.get_text(' ', strip=True))
                continue
            straight_winners = extract_amount(cells[3].get_text(strip=True)) if len(cells) > 3 else None
            straight_amount = extract_amount(cells[4].get_text(strip=True)) if len(cells) > 4 else None
            candidates.append(
                RawCandidate(
                    draw_number=draw_number,
                    draw_date=draw_date,
                    winning_number=winning_number,
                    source=self.name,
                    source_url=source_url or self.base_url,
                    straight_winners=straight_winners,
                    straight_amount=straight_amount,
                )
            )
        return candidates

    def _draw_number(self, cell) -> Optional[int]:
        link = cell.find('a', href=True)
        if link:
            match = RESULT_LINK_PATTERN.search(link['href'])
            if match:
                return int(match.group(1))
        return extract_draw_label(cell.get_text(' ', strip=True))


class RenbanDetailAdapter:
    """One detail page per draw number; fields are scanned out of the raw page text."""

    name = 'renban_detail'

    def __init__(self, base_url: str, fetcher: PageFetcher | None = None):
        self.base_url = base_url if base_url.endswith('/') else f"{base_url}/"
        self.fetcher = fetcher or PageFetcher(self.name)

    def fetch_candidates(self, since_draw: Optional[int] = None, max_pages: Optional[int] = None) -> List[RawCandidate]:
        if since_draw is None:
            raise SourceUnavailable('Detail pages need a starting draw number', self.name, 'Run incrementally')
        max_pages = max_pages or 1
        candidates: List[RawCandidate] = []
        for draw_number in range(since_draw + 1, since_draw + max_pages + 1):
            url = f"{self.base_url}{draw_number}"
            try:
                html = self.fetcher.get(url)
            except PageNotFound:
                logger.info('Renban detail %s not published yet', draw_number)
                break
            except SourceUnavailable as exc:
                if not candidates:
                    raise
                logger.warning('Renban detail %s fetch failed: %s', draw_number, exc)
                break
            candidate = self.parse_candidate(html, draw_number, url)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def parse_candidate(self, text: str, draw_number: int, source_url: str = '') -> Optional[RawCandidate]:
        date_match = DETAIL_DATE_PATTERN.search(text)
        if not date_match:
            logger.debug('No draw date on detail page %s', draw_number)
            return None
        draw_date = parse_date(f"{date_match.group(1)}年{date_match.group(2)}月{date_match.group(3)}日")
        if draw_date is None:
            return None
        year = date_match.group(1)
        winning_number = None

        match = DETAIL_NUMBER_PATTERN.search(text)
        if match and match.group(1) not in (year, str(draw_number)):
            winning_number = match.group(1)
        if winning_number is None:
            for value in TAGGED_NUMBER_PATTERN.findall(text):
                if value not in (year, str(draw_number)):
                    winning_number = value
                    break
        if winning_number is None:
            logger.debug('No winning number on detail page %s', draw_number)
            return None

        return RawCandidate(
            draw_number=draw_number,
            draw_date=draw_date,
            winning_number=winning_number,
            source=self.name,
            source_url=source_url or f"{self.base_url}{draw_number}",
        )
