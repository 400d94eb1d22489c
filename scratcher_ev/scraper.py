"""
Scratcher listing and detail page parsing.

Produces plain records (dicts / ListingEntry) that the adapters turn into
estimator input.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .parsing import parse_currency_or_count


LISTING_URL = "https://www.calottery.com/en/scratchers"
BASE_URL = "https://www.calottery.com"

SCRATCHER_HREF = re.compile(r'/scratchers/\$?[0-9]+', re.IGNORECASE)
INFO_SECTION_ID = 'section-content-1-1'
PRIZE_SECTION_ID = 'section-content-1-3'


@dataclass
class ListingEntry:
    price: str
    name: str
    url: str


def normalize_name(value: str) -> str:
    return re.sub(r'\s+', ' ', value or '').strip()


def parse_game_info_from_url(url: str) -> Dict[str, str]:
    """Price, game number and a readable name from a scratcher URL slug"""
    price_match = re.search(r'/scratchers/\$?([0-9]+)', url, re.IGNORECASE)
    price = f"${price_match.group(1)}" if price_match else '—'
    parts = [p for p in url.split('/') if p]
    slug = parts[-1] if parts else ''
    slug_parts = slug.split('-')
    last_part = slug_parts[-1]
    game_number = last_part if re.fullmatch(r'\d{3,}', last_part) else ''
    name_parts = slug_parts[:-1] if game_number else slug_parts
    name = re.sub(r'\bca(?:lifornia)?\b', '', ' '.join(name_parts), flags=re.IGNORECASE)
    return {
        'price': price,
        'game_number': game_number,
        'name_from_slug': normalize_name(name),
    }


def extract_listing(html: str, base_url: str = BASE_URL) -> List[ListingEntry]:
    soup = BeautifulSoup(html, 'html.parser')
    items: Dict[str, ListingEntry] = {}

    for link in soup.find_all('a', href=True):
        href = link['href']
        if '/scratchers/' not in href or not SCRATCHER_HREF.search(href):
            continue
        absolute_url = urljoin(base_url, href)
        if absolute_url in items:
            continue
        info = parse_game_info_from_url(absolute_url)
        name = normalize_name(link.get_text(' ')) or info['name_from_slug'] or 'Unknown scratcher'
        if info['game_number']:
            name = f"{name} ({info['game_number']})"
        items[absolute_url] = ListingEntry(price=info['price'], name=name, url=absolute_url)

    return list(items.values())


def sort_listing(entries: List[ListingEntry]) -> List[ListingEntry]:
    """Cheapest first, then by name"""
    return sorted(entries, key=lambda e: (parse_currency_or_count(e.price), e.name))


def _info_value(section, soup_text: str, labels) -> str:
    """Value of a 'Label: value' line, preferring <p>Label <strong>value</strong>"""
    if section is not None:
        for p in section.find_all('p'):
            text = p.get_text(' ', strip=True)
            if any(label.lower() in text.lower() for label in labels):
                strong = p.find('strong')
                if strong:
                    return strong.get_text(strip=True)
    for label in labels:
        match = re.search(rf'{re.escape(label)}\s*:?\s*([^\n]+)', soup_text, re.IGNORECASE)
        if match:
            return match.group(1).strip()
    return ''


def _prize_counts(cells) -> Tuple[str, str]:
    """(remaining, total) from the third column onward"""
    third = cells[2]
    spans = third.find_all('span')
    if len(spans) >= 2:
        return spans[0].get_text(strip=True), spans[1].get_text(strip=True)
    text = third.get_text(' ', strip=True)
    match = re.search(r'([\d,]+)\s*of\s*([\d,]+)', text, re.IGNORECASE)
    if match:
        return match.group(1), match.group(2)
    if len(cells) >= 4:
        return text, cells[3].get_text(strip=True)
    return text, ''


def parse_prize_rows(table) -> List[Dict[str, str]]:
    prizes = []
    for row in table.find_all('tr'):
        cells = row.find_all('td')
        if len(cells) < 3:
            continue
        prize = cells[0].get_text(' ', strip=True)
        if not prize:
            continue
        remaining, total = _prize_counts(cells)
        prizes.append({
            'prize': prize,
            'odds': cells[1].get_text(' ', strip=True),
            'remaining': remaining,
            'total': total,
        })
    return prizes


def parse_ticket_page(html: str, url: str = '') -> Dict[str, object]:
    """
    Raw record for one scratcher detail page.

    Keys: name, cost, gameNumber, overallOdds, cashOdds, url, prizes.
    """
    soup = BeautifulSoup(html, 'html.parser')
    page_text = soup.get_text('\n')
    info = soup.find(id=INFO_SECTION_ID)

    title = soup.find('title')
    name = normalize_name(title.get_text()) if title else ''

    prize_section = soup.find(id=PRIZE_SECTION_ID)
    table = (prize_section if prize_section is not None else soup).find('table')
    prizes = parse_prize_rows(table) if table is not None else []

    return {
        'name': name,
        'cost': _info_value(info, page_text, ('Price', 'Cost')),
        'gameNumber': _info_value(info, page_text, ('Game Number', 'Game')),
        'overallOdds': _info_value(info, page_text, ('Overall Odds',)),
        'cashOdds': _info_value(info, page_text, ('Cash Odds',)),
        'url': url,
        'prizes': prizes,
    }
