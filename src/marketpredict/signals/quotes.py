from __future__ import annotations

from marketpredict.exceptions import QuotePriceCalculationError
from marketpredict.models.direction import Direction
from marketpredict.models.quote import Quote

# A week of end-of-day closes is needed before a price direction is trusted.
QUOTE_WINDOW = 7
# A direction compares two closes, whatever the configured window.
MIN_QUOTES = 2


def previous_price_direction(quotes: list[Quote], required: int = QUOTE_WINDOW) -> Direction:
    """Direction of the latest close relative to the close before it.

    ``quotes`` must be ordered oldest first. Raises
    QuotePriceCalculationError when fewer than ``required`` quotes, or fewer
    than two, exist.
    """
    needed = max(required, MIN_QUOTES)
    if len(quotes) < needed:
        company_id = quotes[0].company_id if quotes else ""
        raise QuotePriceCalculationError(company_id, len(quotes), needed)

    return Direction.of_change(quotes[-1].close - quotes[-2].close)
