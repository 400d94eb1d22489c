"""
Expected value estimation for a single scratcher game.

The state only publishes per-tier odds and prize counts, never the number of
tickets still unsold, so that number is reconstructed first:

1. Anchor tier: the free-ticket tier's "1 in N" odds times its printed count
   gives the original print run, scaled by the share of that tier still
   unclaimed.
2. Median of tiers: every tier's remaining count times its odds is an
   independent estimate of the remaining pool; the median resists a few
   tiers with bad odds strings.

Each tier then gets probability = remaining / remaining tickets, and the EV is
the probability-weighted (optionally tax-adjusted) payout minus ticket cost.
"""

import math
from typing import Iterable, Optional, Sequence, Tuple

from .models import EstimateOutput, PrizeTier, TicketContext, TierResult
from .parsing import is_finite_number, median, parse_odds_value


SMALL_PRIZE_THRESHOLD = 500

CANNOT_ESTIMATE = "cannot estimate ticket totals"

STRATEGY_ANCHOR = "anchor"
STRATEGY_MEDIAN = "median"


def _positive(value) -> bool:
    return is_finite_number(value) and value > 0


def find_anchor_tier(tiers: Iterable[PrizeTier]) -> Optional[PrizeTier]:
    """First free-ticket tier, if any"""
    for tier in tiers:
        if tier.is_ticket:
            return tier
    return None


def anchor_remaining_tickets(tiers: Sequence[PrizeTier]) -> float:
    anchor = find_anchor_tier(tiers)
    if anchor is None or not anchor.total or not anchor.odds_value:
        return 0.0
    initial_total_tickets = anchor.total * anchor.odds_value
    remaining_ratio = anchor.remaining / anchor.total
    return initial_total_tickets * remaining_ratio


def tier_ticket_estimate(tier: PrizeTier) -> float:
    odds = tier.odds_value
    if not tier.remaining or not odds:
        return 0.0
    return tier.remaining * odds


def median_remaining_tickets(tiers: Sequence[PrizeTier]) -> float:
    return median(tier_ticket_estimate(t) for t in tiers)


def estimate_remaining_tickets(tiers: Sequence[PrizeTier]) -> Tuple[float, Optional[str]]:
    """
    Returns (remaining tickets, strategy name).

    The anchor result is used whenever it is valid, even when it disagrees
    with the median estimate. An anchor total smaller than some tier's
    remaining prize count cannot be right (a nearly exhausted ticket tier
    does this) and falls through to the median.
    """
    anchored = anchor_remaining_tickets(tiers)
    most_remaining = max((t.remaining for t in tiers), default=0)
    if _positive(anchored) and anchored >= most_remaining:
        return anchored, STRATEGY_ANCHOR
    fallback = median_remaining_tickets(tiers)
    if _positive(fallback):
        return fallback, STRATEGY_MEDIAN
    return 0.0, None


def overall_odds_remaining_tickets(tiers: Sequence[PrizeTier], overall_odds) -> float:
    """
    Print-run estimate from the game's overall odds.

    Initial winners times overall odds gives the print run; losing tickets are
    assumed to sell at the same rate as winners are claimed. Only used as a
    cross-check next to estimate_remaining_tickets.
    """
    odds = parse_odds_value(overall_odds)
    initial_winning = sum(t.total for t in tiers)
    current_winning = sum(t.remaining for t in tiers)
    if not odds or not initial_winning:
        return 0.0
    total_initial = initial_winning * odds
    initial_losing = total_initial - initial_winning
    current_losing = initial_losing * (current_winning / initial_winning)
    result = current_winning + current_losing
    return result if _positive(result) else 0.0


def adjust_value(tier: PrizeTier, value: float, options) -> Tuple[float, bool, bool]:
    """
    Apply small-prize exclusion, then tax.

    Returns (adjusted value, excluded, taxed). Exclusion runs first so a
    zeroed tier stays zero; the free-ticket tier is never taxed.
    """
    excluded = (not options.include_small_prizes
                and 0 < value < SMALL_PRIZE_THRESHOLD)
    adjusted = 0.0 if excluded else value
    taxed = False
    if options.apply_tax and adjusted > 0 and not tier.is_ticket:
        adjusted = adjusted * (1 - options.tax_rate)
        taxed = True
    return adjusted, excluded, taxed


def estimate(context: TicketContext) -> EstimateOutput:
    """Estimate EV for one ticket. Never raises on bad data."""
    tiers = context.prize_tiers
    ticket_cost = context.ticket_cost if is_finite_number(context.ticket_cost) else 0.0
    total_remaining, strategy = estimate_remaining_tickets(tiers)

    results = []
    gross = 0.0
    for tier in tiers:
        value = tier.resolve_value(ticket_cost)
        adjusted, excluded, taxed = adjust_value(tier, value, context.options)
        if total_remaining > 0:
            probability = min(tier.remaining / total_remaining, 1.0)
        else:
            probability = 0.0
        contribution = probability * adjusted
        gross += contribution
        results.append(TierResult(
            label=tier.label,
            value=value,
            odds_value=tier.odds_value,
            remaining=tier.remaining,
            probability=probability,
            adjusted_value=adjusted,
            contribution=contribution,
            excluded_under_500=excluded,
            tax_applied=taxed,
        ))

    if strategy is None:
        return EstimateOutput(
            total_remaining_tickets=None,
            gross_expected_value=None,
            net_expected_value=None,
            tiers=results,
            failure_reason=CANNOT_ESTIMATE,
        )

    if not math.isfinite(gross):
        for result in results:
            result.probability = 0.0
            result.contribution = 0.0
        return EstimateOutput(
            total_remaining_tickets=None,
            gross_expected_value=None,
            net_expected_value=None,
            tiers=results,
            failure_reason=CANNOT_ESTIMATE,
            strategy=strategy,
        )

    return EstimateOutput(
        total_remaining_tickets=total_remaining,
        gross_expected_value=gross,
        net_expected_value=gross - ticket_cost,
        tiers=results,
        strategy=strategy,
    )
