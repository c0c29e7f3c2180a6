"""Inbound cross-domain event handler: Reviews reacts to Catalogue events.

A product becomes reviewable when the Catalogue announces it: a zeroed
ProductRating row is created, which both answers "does this product exist"
and receives the rating aggregate later on.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.catalogue import ProductCreated

from reviews.domain import reviews
from reviews.ports import empty_breakdown
from reviews.projections.product_rating import ProductRating, encode_breakdown
from reviews.review.review import Review

logger = structlog.get_logger(__name__)

reviews.register_external_event(ProductCreated, "Catalogue.ProductCreated.v1")


@reviews.event_handler(part_of=Review, stream_category="catalogue::product")
class CatalogueEventsHandler:
    """Registers catalogue products as reviewable."""

    @handle(ProductCreated)
    def on_product_created(self, event: ProductCreated) -> None:
        repo = current_domain.repository_for(ProductRating)
        try:
            repo.get(str(event.product_id))
        except ObjectNotFoundError:
            repo.add(
                ProductRating(
                    product_id=str(event.product_id),
                    average_rating=0.0,
                    review_count=0,
                    rating_breakdown=encode_breakdown(empty_breakdown()),
                    updated_at=datetime.now(UTC),
                )
            )
            return

        logger.info("Product already reviewable, skipping", product_id=str(event.product_id))
