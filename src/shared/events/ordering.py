"""Ordering event contracts consumed by the Reviews domain.

Registered in Reviews via ``reviews.register_external_event()`` under the
``Ordering.OrderDelivered.v1`` type string so stream deserialization works.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, Text


class OrderDelivered(BaseEvent):
    """An order reached the customer.

    Each delivered product becomes a verified purchase for the customer, which
    flags their review of that product and unlocks the can-review check.
    """

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier()
    items = Text()  # JSON list of {product_id, variant_id}
    delivered_at = DateTime(required=True)
