"""Catalogue event contracts consumed by the Reviews domain.

Registered in Reviews via ``reviews.register_external_event()`` under the
``Catalogue.ProductCreated.v1`` type string.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, String


class ProductCreated(BaseEvent):
    """A product was added to the catalogue; from now on it can be reviewed."""

    __version__ = 1

    product_id = Identifier(required=True)
    sku = String(required=True)
    seller_id = Identifier()
    title = String(required=True)
    category_id = Identifier()
    status = String(required=True)
    created_at = DateTime(required=True)
