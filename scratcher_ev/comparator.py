"""
Calculated vs. claimed cash odds for a listing of games.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .estimator import estimate
from .models import EstimateOutput, TicketContext
from .parsing import is_finite_number


@dataclass
class GameComparison:
    """Data structure for one game in a listing"""
    context: TicketContext
    output: EstimateOutput
    calculated_cash_odds: Optional[float]
    claimed_cash_odds: Optional[float] = None
    claimed_expected_value: Optional[float] = None

    @property
    def cash_odds_delta(self) -> Optional[float]:
        return relative_delta(self.calculated_cash_odds, self.claimed_cash_odds)

    @property
    def expected_value_delta(self) -> Optional[float]:
        return relative_delta(self.output.net_expected_value, self.claimed_expected_value)


def relative_delta(calculated, claimed) -> Optional[float]:
    """(calculated - claimed) / |claimed|, or None when undefined"""
    if not is_finite_number(calculated) or not is_finite_number(claimed):
        return None
    if claimed == 0:
        return None
    return (calculated - claimed) / abs(claimed)


def calculated_cash_odds(context: TicketContext, output: EstimateOutput) -> Optional[float]:
    total = output.total_remaining_tickets
    winners = context.remaining_winning_prizes
    if not is_finite_number(total) or total <= 0:
        return None
    if not is_finite_number(winners) or winners <= 0:
        return None
    return total / winners


def compare_game(context: TicketContext,
                 claimed_cash_odds: Optional[float] = None,
                 claimed_expected_value: Optional[float] = None) -> GameComparison:
    output = estimate(context)
    return GameComparison(
        context=context,
        output=output,
        calculated_cash_odds=calculated_cash_odds(context, output),
        claimed_cash_odds=claimed_cash_odds,
        claimed_expected_value=claimed_expected_value,
    )


def rank_by_expected_value(comparisons: Iterable[GameComparison]) -> List[GameComparison]:
    """Best net EV first; games that could not be estimated go last"""
    def sort_key(c: GameComparison):
        net = c.output.net_expected_value
        if not is_finite_number(net):
            return (1, 0.0)
        return (0, -net)
    return sorted(comparisons, key=sort_key)
