"""Read side of the Reviews domain.

Reads come straight from the review store and the stored product aggregate;
nothing here recomputes or writes.
"""

from dataclasses import dataclass

from protean.exceptions import ValidationError

from reviews.exceptions import NotFoundError
from reviews.ports import (
    DeliveredOrder,
    ProductAggregateWriter,
    ProductCatalog,
    RatingSummary,
    ReviewPage,
    ReviewStore,
)
from reviews.review.verification import PurchaseVerifier

# Accepts both the API's snake_case and the camelCase spelling of older clients
SORT_FIELDS = {
    "created_at": "created_at",
    "createdAt": "created_at",
    "rating": "rating",
    "helpful_count": "helpful_count",
    "helpfulCount": "helpful_count",
}
SORT_ORDERS = ("asc", "desc")


@dataclass(frozen=True)
class ReviewEligibility:
    can_review: bool
    has_purchased: bool
    has_reviewed: bool
    existing_review_id: str | None = None
    order: DeliveredOrder | None = None


class ReviewQueries:
    def __init__(
        self,
        store: ReviewStore,
        catalog: ProductCatalog,
        aggregates: ProductAggregateWriter,
        verifier: PurchaseVerifier,
        default_page_size: int = 10,
        max_page_size: int = 100,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._aggregates = aggregates
        self._verifier = verifier
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    def _require_product(self, product_id: str) -> None:
        if not self._catalog.exists(product_id):
            raise NotFoundError({"product_id": ["Product not found"]})

    def _paging(self, page: int, limit: int | None) -> tuple[int, int]:
        if page < 1:
            raise ValidationError({"page": ["Page must be 1 or greater"]})
        if limit is None:
            limit = self._default_page_size
        if limit < 1:
            raise ValidationError({"limit": ["Limit must be 1 or greater"]})
        return page, min(limit, self._max_page_size)

    def product_rating(self, product_id: str) -> RatingSummary:
        """The stored aggregate of a product; zeroes until its first review."""
        self._require_product(product_id)
        return self._aggregates.read(product_id) or RatingSummary()

    def list_product_reviews(
        self,
        product_id: str,
        page: int = 1,
        limit: int | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> ReviewPage:
        """Approved reviews of a product, sorted by created_at, rating or helpful_count."""
        if sort_by not in SORT_FIELDS:
            raise ValidationError({"sort_by": [f"Cannot sort by {sort_by}"]})
        if sort_order not in SORT_ORDERS:
            raise ValidationError({"sort_order": ["Sort order must be asc or desc"]})
        page, limit = self._paging(page, limit)
        self._require_product(product_id)

        return self._store.product_page(
            product_id,
            page=page,
            limit=limit,
            sort_by=SORT_FIELDS[sort_by],
            descending=sort_order == "desc",
        )

    def list_user_reviews(self, user_id: str, page: int = 1, limit: int | None = None) -> ReviewPage:
        """Every review the user wrote, approved or not, newest first."""
        page, limit = self._paging(page, limit)
        return self._store.user_page(user_id, page=page, limit=limit)

    def can_user_review(self, user_id: str, product_id: str) -> ReviewEligibility:
        """Reviewing needs a delivered order of the product and no earlier review."""
        self._require_product(product_id)

        existing = self._store.find_for_pair(user_id, product_id)
        order = self._verifier.delivered_order(user_id, product_id)
        has_purchased = order is not None
        has_reviewed = existing is not None

        return ReviewEligibility(
            can_review=has_purchased and not has_reviewed,
            has_purchased=has_purchased,
            has_reviewed=has_reviewed,
            existing_review_id=str(existing.id) if existing else None,
            order=order,
        )
