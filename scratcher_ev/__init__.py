"""
Scratcher expected value estimation.

Reconstructs the number of tickets left in a scratch-off game from its prize
table and turns that into per-tier win probabilities and a net EV.
"""

from .comparator import GameComparison, compare_game, relative_delta
from .estimator import (
    CANNOT_ESTIMATE,
    SMALL_PRIZE_THRESHOLD,
    estimate,
    estimate_remaining_tickets,
    overall_odds_remaining_tickets,
)
from .models import (
    EstimateOptions,
    EstimateOutput,
    PrizeTier,
    ScratcherError,
    TicketContext,
    TierResult,
)

__version__ = "0.1.0"
