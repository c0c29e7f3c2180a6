"""VerifiedPurchases: one row per product in a delivered order.

Populated by the OrderDelivered cross-domain event handler and read when a
review is submitted or a customer asks whether they may review a product.
"""

from protean.fields import DateTime, Identifier, String

from reviews.domain import reviews


@reviews.projection
class VerifiedPurchases:
    vp_id = Identifier(identifier=True, required=True)
    user_id = String(required=True)
    product_id = String(required=True)
    order_id = String(required=True)
    delivered_at = DateTime(required=True)
