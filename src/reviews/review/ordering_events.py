"""Inbound cross-domain event handler — Reviews reacts to Ordering events.

Listens for OrderDelivered events from the Ordering domain to populate the
VerifiedPurchases projection, which decides the verified-purchase flag of new
reviews and the can-review check.

Cross-domain events are imported from shared.events.ordering and registered
as external events via reviews.register_external_event().
"""

import json

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.ordering import OrderDelivered

from reviews.domain import reviews
from reviews.projections.verified_purchases import VerifiedPurchases
from reviews.review.review import Review

logger = structlog.get_logger(__name__)

# Register external event so Protean can deserialize it
reviews.register_external_event(OrderDelivered, "Ordering.OrderDelivered.v1")


@reviews.event_handler(part_of=Review, stream_category="ordering::order")
class OrderingEventsHandler:
    """Reacts to Ordering domain events to track verified purchases."""

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        """Record one verified purchase per delivered product.

        Record ids are derived from (order, product), so a replayed event
        finds its rows already present and leaves them alone.
        """
        if not event.customer_id:
            logger.info("OrderDelivered missing customer_id, skipping verified purchase", order_id=str(event.order_id))
            return

        if not event.items:
            logger.info(
                "OrderDelivered missing items, cannot create per-product records",
                order_id=str(event.order_id),
            )
            return

        vp_repo = current_domain.repository_for(VerifiedPurchases)

        for item in json.loads(event.items):
            product_id = item.get("product_id")
            if not product_id:
                logger.info("Delivered item has no product_id, skipping", order_id=str(event.order_id))
                continue

            vp_id = f"{event.order_id}:{product_id}"
            try:
                vp_repo.get(vp_id)
            except ObjectNotFoundError:
                vp_repo.add(
                    VerifiedPurchases(
                        vp_id=vp_id,
                        user_id=str(event.customer_id),
                        product_id=str(product_id),
                        order_id=str(event.order_id),
                        delivered_at=event.delivered_at,
                    )
                )
                continue

            logger.info("Verified purchase already recorded, skipping", vp_id=vp_id)
