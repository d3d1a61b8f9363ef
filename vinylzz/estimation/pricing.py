from decimal import ROUND_HALF_UP, Decimal

from vinylzz.models import Candidate, CandidateMatch, MatchRule


# Candidate type that marks a concrete, sellable release (as opposed to a
# master, artist or label entry).
SELLABLE_TYPE = "release"

# A market with more active listings than this gets the uplift.
MARKET_DEPTH_THRESHOLD = 5
MARKET_DEPTH_UPLIFT = Decimal("1.3")
CENT = Decimal("0.01")


def select_candidate(candidates: list[Candidate]) -> CandidateMatch | None:
    """Pick the first sellable release, else the first candidate."""
    for candidate in candidates:
        if candidate.type == SELLABLE_TYPE:
            return CandidateMatch(candidate=candidate, rule=MatchRule.RELEASE)
    if candidates:
        return CandidateMatch(candidate=candidates[0], rule=MatchRule.FIRST)
    return None


def estimate_price(lowest_price: float | None, num_for_sale: int | None) -> float | None:
    """Derive the estimated price from the lowest asking price.

    >>> estimate_price(10.0, 8)
    13.0
    >>> estimate_price(3.85, 8)
    5.01
    >>> estimate_price(10.0, 5)
    10.0
    >>> estimate_price(None, 8) is None
    True
    """
    if lowest_price is None:
        return None
    if (num_for_sale or 0) > MARKET_DEPTH_THRESHOLD:
        # Decimal arithmetic, halves rounded up to the cent
        uplifted = Decimal(str(lowest_price)) * MARKET_DEPTH_UPLIFT
        return float(uplifted.quantize(CENT, rounding=ROUND_HALF_UP))
    return lowest_price
