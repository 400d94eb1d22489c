"""
Scratcher EV Monitor
====================

Fetches the scratcher listing through the proxy chain, scrapes every game's
prize table, estimates expected value and writes an HTML report.

Output: index.html

Run manually when planning a session.
"""

import sys
import time
from typing import List, Optional

from .adapters import context_from_feed_game
from .comparator import GameComparison, compare_game, rank_by_expected_value
from .fetcher import FetchError, ProxyFetcher
from .models import EstimateOptions, TicketContext
from .parsing import format_currency
from .report import generate_html_report, get_eastern_time
from .scraper import LISTING_URL, ListingEntry, extract_listing, parse_ticket_page, sort_listing


class ScratcherAnalyzer:
    """Runs the listing -> detail page -> estimate pass"""

    def __init__(self, fetcher: Optional[ProxyFetcher] = None,
                 options: Optional[EstimateOptions] = None,
                 listing_url: str = LISTING_URL,
                 delay_seconds: float = 0.5, verbose: bool = True):
        self.fetcher = fetcher or ProxyFetcher(verbose=verbose)
        self.options = options or EstimateOptions()
        self.listing_url = listing_url
        self.delay = delay_seconds
        self.verbose = verbose

    def log(self, message: str):
        if self.verbose:
            print(message)

    def get_listing(self) -> List[ListingEntry]:
        self.log("Fetching scratcher listing...")
        result = self.fetcher.fetch(self.listing_url)
        entries = sort_listing(extract_listing(result.content, self.listing_url))
        self.log(f"Loaded {len(entries)} scratchers via {result.proxy_name}.")
        return entries

    def get_game_context(self, entry: ListingEntry) -> Optional[GameComparison]:
        """Scrape one detail page and estimate it; None if the page is unusable"""
        if self.delay:
            time.sleep(self.delay)
        try:
            result = self.fetcher.fetch(entry.url)
        except FetchError as e:
            self.log(f"  Skipping {entry.name}: {e}")
            return None

        record = parse_ticket_page(result.content, entry.url)
        if not record['prizes']:
            self.log(f"  Skipping {entry.name}: no prize table")
            return None
        if not record['name']:
            record['name'] = entry.name
        if not record['cost']:
            record['cost'] = entry.price

        context, claimed_odds, claimed_ev = context_from_feed_game(record, self.options)
        return compare_game(context, claimed_odds, claimed_ev)

    def analyze_all(self) -> List[GameComparison]:
        comparisons = []
        for entry in self.get_listing():
            self.log(f"Processing {entry.name}")
            comparison = self.get_game_context(entry)
            if comparison is None:
                continue
            output = comparison.output
            if output.ok:
                self.log(f"  Price: {format_currency(comparison.context.ticket_cost)}, "
                         f"EV: {format_currency(output.net_expected_value)}")
            else:
                self.log(f"  {output.failure_reason}")
            comparisons.append(comparison)
        return rank_by_expected_value(comparisons)


def estimate_feed(games, options: Optional[EstimateOptions] = None) -> List[GameComparison]:
    """Estimate every game in an already-fetched JSON feed"""
    comparisons = []
    for game in games:
        context, claimed_odds, claimed_ev = context_from_feed_game(game, options)
        comparisons.append(compare_game(context, claimed_odds, claimed_ev))
    return rank_by_expected_value(comparisons)


def main():
    """Main execution function"""
    print("=" * 60)
    print("Scratcher EV Monitor")
    print("=" * 60)
    print(f"Started at: {get_eastern_time().strftime('%Y-%m-%d %H:%M:%S')} Eastern")
    print()

    analyzer = ScratcherAnalyzer(delay_seconds=0.5, verbose=True)
    try:
        comparisons = analyzer.analyze_all()
    except FetchError as e:
        print(f"\nERROR: {e}")
        sys.exit(1)

    estimated = [c for c in comparisons if c.output.ok]
    if not estimated:
        print("\nERROR: No scratchers could be estimated!")
        sys.exit(1)

    print(f"\n{'=' * 60}")
    print(f"ANALYSIS COMPLETE: {len(estimated)} of {len(comparisons)} games estimated")
    print("=" * 60)

    print("\nTop 5 by expected value:")
    for i, c in enumerate(estimated[:5], 1):
        ctx: TicketContext = c.context
        print(f"  #{i}: {ctx.name} ({format_currency(ctx.ticket_cost)})")
        print(f"      EV: {format_currency(c.output.net_expected_value)} | "
              f"Remaining tickets: {c.output.total_remaining_tickets:,.0f}")

    print("\nGenerating HTML report...")
    html = generate_html_report(comparisons)
    with open("index.html", "w", encoding="utf-8") as f:
        f.write(html)

    print("Report saved to: index.html")
    print(f"\nFinished at: {get_eastern_time().strftime('%Y-%m-%d %H:%M:%S')} Eastern")


if __name__ == "__main__":
    main()
