"""
Text and HTML rendering of estimates.
"""

from datetime import datetime, timedelta, timezone
from html import escape
from typing import List

from .comparator import GameComparison
from .estimator import overall_odds_remaining_tickets
from .models import EstimateOutput, TicketContext
from .parsing import (
    format_compact_currency,
    format_currency,
    format_number,
    format_percent_delta,
)


def get_eastern_time():
    """Get current time in Eastern timezone"""
    utc_now = datetime.now(timezone.utc)
    eastern = utc_now - timedelta(hours=5)
    return eastern


def format_adjustments(context: TicketContext) -> str:
    options = context.options
    small = 'include' if options.include_small_prizes else 'exclude'
    if options.apply_tax:
        tax = f"apply {format_number(options.tax_rate * 100)}% tax"
    else:
        tax = 'no tax applied'
    return f"Adjustments: {small} prizes under $500; {tax}."


def format_ticket_summary(context: TicketContext, output: EstimateOutput) -> str:
    """Plain-text result block for a single ticket"""
    if not output.ok:
        return f"Error: {output.failure_reason}"
    lines = [
        f"Name: {context.name or 'Example Ticket'}",
        f"Ticket cost: {format_currency(context.ticket_cost)}",
        f"Expected value: {format_currency(output.net_expected_value)}",
        f"Total remaining tickets: {format_number(output.total_remaining_tickets)}",
    ]
    if context.game_number:
        lines.insert(1, f"Game Number: {context.game_number}")
    if context.cash_odds_text:
        lines.append(f"Cash Odds: {context.cash_odds_text}")
    if context.overall_odds_text:
        cross_check = overall_odds_remaining_tickets(context.prize_tiers, context.overall_odds_text)
        if cross_check:
            lines.append(f"Overall-odds estimate: {format_number(cross_check)}")
    lines.append(format_adjustments(context))
    return '\n'.join(lines)


def format_tier_table(output: EstimateOutput) -> str:
    """Per-tier arithmetic, one row per prize tier"""
    rows = [f"{'Prize':<12} {'Probability':>12} {'Value':>12} {'Contribution':>14}"]
    for tier in output.tiers:
        flags = []
        if tier.excluded_under_500:
            flags.append('excluded')
        if tier.tax_applied:
            flags.append('taxed')
        rows.append(
            f"{tier.label:<12} {format_number(tier.probability):>12} "
            f"{format_currency(tier.adjusted_value):>12} "
            f"{format_currency(tier.contribution):>14}"
            + (f"  ({', '.join(flags)})" if flags else '')
        )
    return '\n'.join(rows)


def _top_prize_text(context: TicketContext) -> str:
    cash_tiers = [t for t in context.prize_tiers if not t.is_ticket]
    if not cash_tiers:
        return "—"
    top = max(cash_tiers, key=lambda t: t.resolve_value(context.ticket_cost))
    value = format_compact_currency(top.resolve_value(context.ticket_cost))
    return f"{value} ({top.remaining:,.0f} of {top.total:,.0f})"


def _odds_text(value) -> str:
    text = format_number(value)
    return text if text == 'n/a' else f"1 in {format_number(round(value, 2))}"


def generate_html_report(comparisons: List[GameComparison]) -> str:
    """Generate the HTML report for a listing of games"""
    report_time = get_eastern_time().strftime('%B %d, %Y at %I:%M %p') + ' EST'

    rows = []
    for rank, c in enumerate(comparisons, 1):
        ctx = c.context
        net = c.output.net_expected_value
        ev_class = 'hot' if net is not None and net > 0 else ''
        name = escape(ctx.name or 'Unknown scratcher')
        if ctx.url:
            name = f'<a href="{escape(ctx.url)}" target="_blank" rel="noreferrer">{name}</a>'
        rows.append(
            f"<tr><td>{rank}</td><td>{name}</td>"
            f"<td>{escape(format_currency(ctx.ticket_cost))}</td>"
            f"<td>{escape(_top_prize_text(ctx))}</td>"
            f"<td class='{ev_class}'>{escape(format_currency(net))}</td>"
            f"<td>{escape(_odds_text(c.calculated_cash_odds))}</td>"
            f"<td>{escape(_odds_text(c.claimed_cash_odds))}</td>"
            f"<td>{escape(format_percent_delta(c.cash_odds_delta))}</td>"
            f"<td>{escape(c.output.failure_reason or '')}</td></tr>"
        )
    if not rows:
        rows.append('<tr><td colspan="9">No scratchers found. Try again later.</td></tr>')

    return f"""<!DOCTYPE html>
<html>
<head>
    <title>Scratcher EV Report</title>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>
        body {{ font-family: -apple-system, sans-serif; max-width: 960px; margin: 0 auto; padding: 20px; background: #f4f4f9; }}
        h1 {{ text-align: center; color: #333; }}
        table {{ width: 100%; border-collapse: collapse; font-size: 14px; background: white; }}
        th, td {{ padding: 8px; text-align: left; border-bottom: 1px solid #ddd; }}
        th {{ background-color: #007bff; color: white; }}
        .hot {{ color: green; font-weight: bold; }}
        .timestamp {{ text-align: center; color: #666; font-size: 0.8em; }}
    </style>
</head>
<body>
    <h1>Scratcher Expected Value</h1>
    <p class="timestamp">Generated: {report_time}</p>
    <table>
        <tr><th>#</th><th>Game</th><th>Price</th><th>Top Prize</th><th>Net EV</th><th>Calculated Cash Odds</th><th>Claimed Cash Odds</th><th>Delta</th><th>Notes</th></tr>
        {''.join(rows)}
    </table>
    <p class="timestamp">This is analysis, not advice. All lottery play involves risk. Play responsibly.</p>
</body>
</html>
"""
