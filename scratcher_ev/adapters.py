"""
Normalization from scraped / feed records into estimator input.

HTML tables and JSON feeds name the same fields differently; everything is
mapped onto PrizeTier and TicketContext here so the estimator never sees raw
markup or source-specific keys.
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from .models import EstimateOptions, EstimateOutput, PrizeTier, TicketContext
from .parsing import is_finite_number, parse_currency_or_count, parse_odds_value


LABEL_KEYS = ('label', 'prize', 'prizeAmount', 'prize_amount', 'amount')
ODDS_KEYS = ('oddsText', 'odds', 'odds_text')
REMAINING_KEYS = ('remaining', 'remainingCount', 'prizesRemaining', 'remaining_count')
TOTAL_KEYS = ('total', 'totalCount', 'initial', 'totalPrizes', 'total_count')

PRICE_KEYS = ('ticketCost', 'price', 'ticketPrice', 'cost')
TIERS_KEYS = ('prizeTiers', 'prizes', 'tiers')
NAME_KEYS = ('name', 'gameName', 'game_name')
GAME_NUMBER_KEYS = ('gameNumber', 'game_number', 'id')
CASH_ODDS_KEYS = ('claimedCashOdds', 'cashOdds', 'cash_odds')
OVERALL_ODDS_KEYS = ('overallOdds', 'overall_odds')
CLAIMED_EV_KEYS = ('claimedExpectedValue', 'expectedValue', 'ev')


def _first(record: Mapping, keys, default=None):
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return default


def _label_text(raw) -> str:
    if raw is None:
        return ""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        # feeds send 10000 where pages show "$10,000"
        return f"${raw:,.0f}" if float(raw).is_integer() else f"${raw:,.2f}"
    return str(raw).strip()


def tier_from_record(record: Mapping[str, Any]) -> PrizeTier:
    return PrizeTier(
        label=_label_text(_first(record, LABEL_KEYS)),
        odds_text=str(_first(record, ODDS_KEYS, "")).strip(),
        remaining=parse_currency_or_count(_first(record, REMAINING_KEYS, 0)),
        total=parse_currency_or_count(_first(record, TOTAL_KEYS, 0)),
    )


def options_from_mapping(data: Optional[Mapping[str, Any]]) -> EstimateOptions:
    if not data:
        return EstimateOptions()
    return EstimateOptions.from_percent(
        include_small_prizes=data.get('includeSmallPrizes', True),
        apply_tax=data.get('applyTax', False),
        tax_rate_percent=data.get('taxRatePercent', 0),
    )


def context_from_input(data: Mapping[str, Any]) -> TicketContext:
    """Map an EstimateInput-shaped mapping into a TicketContext"""
    tiers = [tier_from_record(r) for r in (_first(data, TIERS_KEYS) or [])
             if isinstance(r, Mapping)]
    return TicketContext(
        ticket_cost=parse_currency_or_count(_first(data, PRICE_KEYS, 0)),
        prize_tiers=tuple(tiers),
        options=options_from_mapping(data.get('options')),
        name=str(_first(data, NAME_KEYS, "")),
        game_number=str(_first(data, GAME_NUMBER_KEYS, "")),
        url=str(data.get('url') or ""),
        overall_odds_text=str(_first(data, OVERALL_ODDS_KEYS, "")),
        cash_odds_text=str(_first(data, CASH_ODDS_KEYS, "")),
    )


def _claimed_number(raw, parser) -> Optional[float]:
    if raw is None or raw == "":
        return None
    if is_finite_number(raw):
        return float(raw)
    value = parser(raw)
    return value if value else None


def _signed_number(raw) -> float:
    # claimed EV is usually negative, so the sign has to survive
    text = str(raw).strip()
    value = parse_currency_or_count(text)
    return -value if text.startswith('-') else value


def context_from_feed_game(game: Mapping[str, Any],
                           options: Optional[EstimateOptions] = None
                           ) -> Tuple[TicketContext, Optional[float], Optional[float]]:
    """
    Returns (context, claimed cash odds, claimed EV) for one feed game.
    """
    context = context_from_input(game)
    if options is not None:
        context = context.with_options(options)
    claimed_odds = _claimed_number(_first(game, CASH_ODDS_KEYS), parse_odds_value)
    claimed_ev = _claimed_number(_first(game, CLAIMED_EV_KEYS), _signed_number)
    return context, claimed_odds, claimed_ev


def output_to_dict(output: EstimateOutput) -> Dict[str, Any]:
    """EstimateOutput in the camelCase shape the renderer consumes"""
    return {
        'totalRemainingTickets': output.total_remaining_tickets,
        'grossExpectedValue': output.gross_expected_value,
        'netExpectedValue': output.net_expected_value,
        'tiers': [
            {
                'label': t.label,
                'probability': t.probability,
                'adjustedValue': t.adjusted_value,
                'contribution': t.contribution,
                'excludedUnder500': t.excluded_under_500,
                'taxApplied': t.tax_applied,
            }
            for t in output.tiers
        ],
        'failureReason': output.failure_reason,
    }
