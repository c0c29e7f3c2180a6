"""Protean-backed implementations of the review ports.

Each adapter is handed the domain explicitly and resolves repositories from
it, so the services built on top carry no ambient state of their own.
"""

from datetime import UTC, datetime

import structlog
from protean.domain import Domain
from protean.exceptions import ObjectNotFoundError

from reviews.exceptions import AggregateWriteError, NotFoundError
from reviews.ports import (
    DeliveredOrder,
    OrderLookup,
    ProductAggregateWriter,
    ProductCatalog,
    RatingSummary,
    ReviewPage,
    ReviewStore,
)
from reviews.projections.product_rating import ProductRating, encode_breakdown, to_summary
from reviews.projections.verified_purchases import VerifiedPurchases
from reviews.review.review import Review

logger = structlog.get_logger(__name__)


def _review_not_found(review_id) -> NotFoundError:
    return NotFoundError({"review_id": [f"Review {review_id} not found"]})


class ProteanReviewStore(ReviewStore):
    def __init__(self, domain: Domain) -> None:
        self._domain = domain

    @property
    def _repo(self):
        return self._domain.repository_for(Review)

    def get(self, review_id: str) -> Review:
        try:
            return self._repo.get(review_id)
        except ObjectNotFoundError as exc:
            raise _review_not_found(review_id) from exc

    def find_for_pair(self, user_id: str, product_id: str) -> Review | None:
        return self._repo.find_for_pair(user_id, product_id)

    def insert(self, review: Review) -> None:
        self._repo.add_unique(review)

    def save(self, review: Review) -> None:
        self._repo.add(review)

    def delete(self, review: Review) -> None:
        self._repo.remove_review(review)

    def add_helpful_vote(self, review_id: str, voter_id: str) -> int:
        try:
            return self._repo.record_helpful_vote(review_id, voter_id)
        except ObjectNotFoundError as exc:
            raise _review_not_found(review_id) from exc

    def approved_ratings(self, product_id: str) -> list[int]:
        return [review.rating for review in self._repo.approved_for_product(product_id)]

    def product_page(self, product_id: str, page: int, limit: int, sort_by: str, descending: bool) -> ReviewPage:
        order_by = f"-{sort_by}" if descending else sort_by
        items, total = self._repo.page(page, limit, order_by, product_id=str(product_id), is_approved=True)
        return ReviewPage(items=items, total=total, page=page, limit=limit)

    def user_page(self, user_id: str, page: int, limit: int) -> ReviewPage:
        items, total = self._repo.page(page, limit, "-created_at", user_id=str(user_id))
        return ReviewPage(items=items, total=total, page=page, limit=limit)


class ProductRatingCatalog(ProductCatalog):
    """A product is reviewable once the Catalogue announced it."""

    def __init__(self, domain: Domain) -> None:
        self._domain = domain

    def exists(self, product_id: str) -> bool:
        try:
            self._domain.repository_for(ProductRating).get(product_id)
        except ObjectNotFoundError:
            return False
        return True


class ProductRatingWriter(ProductAggregateWriter):
    def __init__(self, domain: Domain) -> None:
        self._domain = domain

    def read(self, product_id: str) -> RatingSummary | None:
        try:
            record = self._domain.repository_for(ProductRating).get(product_id)
        except ObjectNotFoundError:
            return None
        return to_summary(record)

    def write(self, product_id: str, summary: RatingSummary) -> None:
        repo = self._domain.repository_for(ProductRating)
        try:
            record = repo.get(product_id)
        except ObjectNotFoundError as exc:
            raise AggregateWriteError(f"No rating record for product {product_id}") from exc

        record.average_rating = summary.average
        record.review_count = summary.count
        record.rating_breakdown = encode_breakdown(summary.breakdown)
        record.updated_at = datetime.now(UTC)

        try:
            repo.add(record)
        except Exception as exc:
            raise AggregateWriteError(f"Could not store rating for product {product_id}") from exc


class VerifiedPurchaseLookup(OrderLookup):
    """Delivered orders as recorded from the Ordering domain's events.

    May be called off the request thread, so it pushes its own domain context.
    """

    def __init__(self, domain: Domain) -> None:
        self._domain = domain

    def find_delivered_order(self, user_id: str, product_id: str) -> DeliveredOrder | None:
        with self._domain.domain_context():
            records = (
                self._domain.repository_for(VerifiedPurchases)
                ._dao.query.filter(user_id=str(user_id), product_id=str(product_id))
                .all()
                .items
            )
        if not records:
            return None
        return DeliveredOrder(order_id=str(records[0].order_id), delivered_at=records[0].delivered_at)
