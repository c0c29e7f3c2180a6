"""ProductRating: the product's denormalized rating aggregate.

One row per reviewable product, created when the Catalogue announces the
product and overwritten wholesale by the rating aggregator after every review
mutation. Never patched incrementally.
"""

import json

from protean.fields import DateTime, Float, Identifier, Integer, Text

from reviews.domain import reviews
from reviews.ports import RatingSummary, empty_breakdown


@reviews.projection
class ProductRating:
    product_id = Identifier(identifier=True, required=True)
    average_rating = Float(default=0.0)
    review_count = Integer(default=0)
    rating_breakdown = Text()  # JSON: {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}
    updated_at = DateTime()


def encode_breakdown(breakdown: dict[int, int]) -> str:
    return json.dumps({str(star): count for star, count in breakdown.items()})


def decode_breakdown(raw: str | None) -> dict[int, int]:
    breakdown = empty_breakdown()
    if raw:
        for star, count in json.loads(raw).items():
            breakdown[int(star)] = count
    return breakdown


def to_summary(record: ProductRating) -> RatingSummary:
    return RatingSummary(
        average=record.average_rating or 0.0,
        count=record.review_count or 0,
        breakdown=decode_breakdown(record.rating_breakdown),
    )
