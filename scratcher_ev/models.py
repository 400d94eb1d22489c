"""
Data structures for scratcher EV estimation.

Inputs (PrizeTier, EstimateOptions, TicketContext) are frozen so a single
snapshot can be re-estimated with different options without side effects.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .parsing import (
    is_ticket_label,
    parse_currency_or_count,
    parse_odds_value,
)


class ScratcherError(Exception):
    """Base class for errors raised by this package"""


@dataclass(frozen=True)
class PrizeTier:
    """Represents a single prize tier"""
    label: str
    odds_text: str = ""
    remaining: float = 0.0
    total: float = 0.0

    @property
    def is_ticket(self) -> bool:
        return is_ticket_label(self.label)

    @property
    def odds_value(self) -> float:
        return parse_odds_value(self.odds_text)

    @property
    def percent_remaining(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.remaining / self.total) * 100

    def resolve_value(self, ticket_cost: float) -> float:
        """Cash value of the tier; a free ticket is worth the ticket price"""
        if self.is_ticket:
            return ticket_cost
        return parse_currency_or_count(self.label)


@dataclass(frozen=True)
class EstimateOptions:
    include_small_prizes: bool = True
    apply_tax: bool = False
    tax_rate: float = 0.0

    @classmethod
    def from_percent(cls, include_small_prizes: bool = True,
                     apply_tax: bool = False,
                     tax_rate_percent=0) -> "EstimateOptions":
        """Build options from a 0-100 tax percentage, clamped into [0, 1)"""
        try:
            percent = float(tax_rate_percent)
        except (TypeError, ValueError):
            percent = 0.0
        if percent != percent:  # NaN
            percent = 0.0
        rate = min(max(percent / 100, 0.0), 0.999999)
        return cls(
            include_small_prizes=bool(include_small_prizes),
            apply_tax=bool(apply_tax),
            tax_rate=rate,
        )


@dataclass(frozen=True)
class TicketContext:
    """Invocation-scoped input to the estimator"""
    ticket_cost: float
    prize_tiers: Tuple[PrizeTier, ...] = ()
    options: EstimateOptions = field(default_factory=EstimateOptions)
    name: str = ""
    game_number: str = ""
    url: str = ""
    overall_odds_text: str = ""
    cash_odds_text: str = ""

    def __post_init__(self):
        # lists are accepted for convenience but stored as a tuple
        if not isinstance(self.prize_tiers, tuple):
            object.__setattr__(self, 'prize_tiers', tuple(self.prize_tiers))

    def with_options(self, options: EstimateOptions) -> "TicketContext":
        return TicketContext(
            ticket_cost=self.ticket_cost,
            prize_tiers=self.prize_tiers,
            options=options,
            name=self.name,
            game_number=self.game_number,
            url=self.url,
            overall_odds_text=self.overall_odds_text,
            cash_odds_text=self.cash_odds_text,
        )

    @property
    def remaining_winning_prizes(self) -> float:
        return sum(t.remaining for t in self.prize_tiers)


@dataclass
class TierResult:
    label: str
    value: float
    odds_value: float
    remaining: float
    probability: float
    adjusted_value: float
    contribution: float
    excluded_under_500: bool = False
    tax_applied: bool = False


@dataclass
class EstimateOutput:
    total_remaining_tickets: Optional[float]
    gross_expected_value: Optional[float]
    net_expected_value: Optional[float]
    tiers: List[TierResult] = field(default_factory=list)
    failure_reason: Optional[str] = None
    strategy: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure_reason is None
