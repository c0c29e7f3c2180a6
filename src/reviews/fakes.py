"""In-memory implementations of the review ports for development and testing.

Every fake can be configured at runtime to misbehave (fail, stall), which is
how the fail-open and retry paths of the services are exercised.
"""

import threading
import time

from reviews.exceptions import AggregateWriteError, DuplicateReviewError, NotFoundError
from reviews.ports import (
    DeliveredOrder,
    OrderLookup,
    ProductAggregateWriter,
    ProductCatalog,
    RatingSummary,
    ReviewPage,
    ReviewStore,
)


class InMemoryReviewStore(ReviewStore):
    """Reviews in a dict, with a pair index enforced under a lock."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._reviews: dict[str, object] = {}
        self._pairs: dict[tuple[str, str], str] = {}

    def get(self, review_id: str):
        with self._lock:
            review = self._reviews.get(str(review_id))
        if review is None:
            raise NotFoundError({"review_id": [f"Review {review_id} not found"]})
        return review

    def find_for_pair(self, user_id: str, product_id: str):
        with self._lock:
            review_id = self._pairs.get((str(user_id), str(product_id)))
            return self._reviews.get(review_id) if review_id else None

    def insert(self, review) -> None:
        pair = (str(review.user_id), str(review.product_id))
        with self._lock:
            if pair in self._pairs:
                raise DuplicateReviewError({"review": ["You have already reviewed this product"]})
            self._pairs[pair] = str(review.id)
            self._reviews[str(review.id)] = review

    def save(self, review) -> None:
        with self._lock:
            if str(review.id) not in self._reviews:
                raise NotFoundError({"review_id": [f"Review {review.id} not found"]})
            self._reviews[str(review.id)] = review

    def delete(self, review) -> None:
        with self._lock:
            self._reviews.pop(str(review.id), None)
            self._pairs.pop((str(review.user_id), str(review.product_id)), None)

    def add_helpful_vote(self, review_id: str, voter_id: str) -> int:
        with self._lock:
            return self.get(review_id).mark_helpful(voter_id)

    def _matching(self, predicate) -> list:
        with self._lock:
            return [review for review in self._reviews.values() if predicate(review)]

    def approved_ratings(self, product_id: str) -> list[int]:
        reviews = self._matching(lambda r: str(r.product_id) == str(product_id) and r.is_approved)
        return [review.rating for review in reviews]

    def product_page(self, product_id: str, page: int, limit: int, sort_by: str, descending: bool) -> ReviewPage:
        reviews = self._matching(lambda r: str(r.product_id) == str(product_id) and r.is_approved)
        reviews.sort(key=lambda r: getattr(r, sort_by), reverse=descending)
        return self._page(reviews, page, limit)

    def user_page(self, user_id: str, page: int, limit: int) -> ReviewPage:
        reviews = self._matching(lambda r: str(r.user_id) == str(user_id))
        reviews.sort(key=lambda r: r.created_at, reverse=True)
        return self._page(reviews, page, limit)

    @staticmethod
    def _page(reviews: list, page: int, limit: int) -> ReviewPage:
        start = (page - 1) * limit
        return ReviewPage(items=reviews[start : start + limit], total=len(reviews), page=page, limit=limit)


class InMemoryProductCatalog(ProductCatalog):
    def __init__(self, product_ids=()) -> None:
        self.product_ids: set[str] = {str(pid) for pid in product_ids}

    def add(self, product_id: str) -> None:
        self.product_ids.add(str(product_id))

    def exists(self, product_id: str) -> bool:
        return str(product_id) in self.product_ids


class InMemoryAggregateSink(ProductAggregateWriter):
    """Stores aggregates per product. ``fail_next(n)`` rejects the next n writes."""

    def __init__(self) -> None:
        self.aggregates: dict[str, RatingSummary] = {}
        self.attempts: int = 0
        self._failures_left: int = 0

    def fail_next(self, times: int) -> None:
        self._failures_left = times

    def write(self, product_id: str, summary: RatingSummary) -> None:
        self.attempts += 1
        if self._failures_left > 0:
            self._failures_left -= 1
            raise AggregateWriteError("Aggregate sink unavailable")
        self.aggregates[str(product_id)] = summary

    def read(self, product_id: str) -> RatingSummary | None:
        return self.aggregates.get(str(product_id))


class InMemoryOrderLookup(OrderLookup):
    """Delivered orders keyed by (user, product).

    ``should_fail`` raises on every lookup; ``delay`` stalls each lookup by
    that many seconds.
    """

    def __init__(self) -> None:
        self.deliveries: dict[tuple[str, str], DeliveredOrder] = {}
        self.should_fail: bool = False
        self.delay: float = 0.0
        self.calls: list[tuple[str, str]] = []

    def record_delivery(self, user_id: str, product_id: str, order_id: str = "order-1", delivered_at=None) -> None:
        self.deliveries[(str(user_id), str(product_id))] = DeliveredOrder(order_id=order_id, delivered_at=delivered_at)

    def find_delivered_order(self, user_id: str, product_id: str) -> DeliveredOrder | None:
        self.calls.append((str(user_id), str(product_id)))
        if self.delay:
            time.sleep(self.delay)
        if self.should_fail:
            raise ConnectionError("Order service unavailable")
        return self.deliveries.get((str(user_id), str(product_id)))
