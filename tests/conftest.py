import pytest

from scratcher_ev.models import EstimateOptions, PrizeTier, TicketContext


@pytest.fixture
def two_tier_context():
    """Free-ticket tier plus one $10 tier, $5 ticket."""
    return TicketContext(
        ticket_cost=5,
        prize_tiers=(
            PrizeTier("Ticket", "1 in 6", remaining=1200, total=3000),
            PrizeTier("$10", "1 in 12", remaining=600, total=1500),
        ),
    )


@pytest.fixture
def example_tiers():
    return (
        PrizeTier("Ticket", "1 in 6.00", remaining=1200, total=3000),
        PrizeTier("$10", "1 in 12.00", remaining=600, total=1500),
        PrizeTier("$25", "1 in 60.00", remaining=110, total=300),
        PrizeTier("$50", "1 in 250.00", remaining=30, total=90),
        PrizeTier("$500", "1 in 2000.00", remaining=4, total=12),
        PrizeTier("$10,000", "1 in 20000.00", remaining=1, total=3),
    )


@pytest.fixture
def example_context(example_tiers):
    return TicketContext(ticket_cost=5, prize_tiers=example_tiers,
                         options=EstimateOptions(), name="Example Ticket")
