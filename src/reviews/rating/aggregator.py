"""RatingAggregator: derives a product's rating aggregate from its reviews.

The aggregate is always recomputed from the full set of approved reviews and
written wholesale; there is no increment/decrement path. Two recomputes with
no mutation in between produce identical results, so concurrent recomputes
may finish in any order.
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

import structlog

from reviews.exceptions import AggregateWriteError
from reviews.ports import STAR_VALUES, ProductAggregateWriter, RatingSummary, ReviewStore, empty_breakdown

logger = structlog.get_logger(__name__)


def summarize(ratings: Iterable[int]) -> RatingSummary:
    """Build {average, count, breakdown} from star ratings."""
    breakdown = empty_breakdown()
    for rating in ratings:
        star = int(rating)
        if star in breakdown:
            breakdown[star] += 1

    count = sum(breakdown.values())
    if count == 0:
        return RatingSummary()

    weighted_sum = sum(star * breakdown[star] for star in STAR_VALUES)
    # Half-up on the exact quotient: 4.25 shows as 4.3, 2.25 as 2.3.
    average = (Decimal(weighted_sum) / Decimal(count)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return RatingSummary(average=float(average), count=count, breakdown=breakdown)


class RatingAggregator:
    def __init__(self, store: ReviewStore, sink: ProductAggregateWriter, write_attempts: int = 2) -> None:
        self._store = store
        self._sink = sink
        self._write_attempts = max(write_attempts, 2)

    def get_average_rating(self, product_id: str) -> RatingSummary:
        """Compute the aggregate without storing it."""
        return summarize(self._store.approved_ratings(product_id))

    def recompute(self, product_id: str) -> RatingSummary:
        """Recompute the aggregate from approved reviews and overwrite the stored one.

        A sink that keeps failing leaves the stored aggregate stale; that is
        logged for reconciliation and not raised, since the triggering review
        write is already committed.
        """
        summary = self.get_average_rating(product_id)
        self._write(product_id, summary)
        return summary

    def _write(self, product_id: str, summary: RatingSummary) -> bool:
        for attempt in range(1, self._write_attempts + 1):
            try:
                self._sink.write(product_id, summary)
                return True
            except AggregateWriteError as exc:
                if attempt < self._write_attempts:
                    logger.warning(
                        "Rating aggregate write failed, retrying",
                        product_id=str(product_id),
                        attempt=attempt,
                        error=str(exc),
                    )
                else:
                    logger.error(
                        "Rating aggregate is stale",
                        product_id=str(product_id),
                        attempts=attempt,
                        average=summary.average,
                        count=summary.count,
                        error=str(exc),
                    )
        return False
