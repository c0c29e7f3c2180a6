"""Ports (abstract interfaces) the review services depend on.

The services never reach for ``current_domain`` themselves; they are handed
one implementation of each port. ``reviews.adapters`` binds them to protean
repositories and projections, ``reviews.fakes`` keeps everything in memory for
development and tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

STAR_VALUES = (1, 2, 3, 4, 5)


def empty_breakdown() -> dict[int, int]:
    return {star: 0 for star in STAR_VALUES}


@dataclass(frozen=True)
class RatingSummary:
    """The derived {average, count, breakdown} of a product's approved reviews."""

    average: float = 0.0
    count: int = 0
    breakdown: dict[int, int] = field(default_factory=empty_breakdown)

    def as_dict(self) -> dict:
        return {
            "average": self.average,
            "count": self.count,
            "breakdown": dict(self.breakdown),
        }


@dataclass(frozen=True)
class DeliveredOrder:
    """A delivered order that contained the product."""

    order_id: str
    delivered_at: datetime | None = None


@dataclass(frozen=True)
class ReviewPage:
    """One page of reviews plus the total across all pages."""

    items: list
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0


class ReviewStore(ABC):
    """Durable storage of Review aggregates.

    ``insert`` must refuse a second review for the same (user, product) pair
    even when two inserts race; the loser gets ``DuplicateReviewError``.
    """

    @abstractmethod
    def get(self, review_id: str):
        """Return the review or raise ``NotFoundError``."""
        ...

    @abstractmethod
    def find_for_pair(self, user_id: str, product_id: str):
        """Return the review ``user_id`` wrote for ``product_id``, or None."""
        ...

    @abstractmethod
    def insert(self, review) -> None:
        """Persist a new review, enforcing the reviewer/product uniqueness."""
        ...

    @abstractmethod
    def save(self, review) -> None:
        """Persist changes to an existing review."""
        ...

    @abstractmethod
    def delete(self, review) -> None:
        """Remove the review permanently."""
        ...

    @abstractmethod
    def add_helpful_vote(self, review_id: str, voter_id: str) -> int:
        """Atomically add ``voter_id`` to the review's voter set; return the new set size."""
        ...

    @abstractmethod
    def approved_ratings(self, product_id: str) -> list[int]:
        """Ratings of every currently approved review of the product."""
        ...

    @abstractmethod
    def product_page(self, product_id: str, page: int, limit: int, sort_by: str, descending: bool) -> ReviewPage:
        """Approved reviews of a product, sorted and paginated."""
        ...

    @abstractmethod
    def user_page(self, user_id: str, page: int, limit: int) -> ReviewPage:
        """All of a user's reviews regardless of approval, newest first."""
        ...


class ProductCatalog(ABC):
    """Answers whether a product exists."""

    @abstractmethod
    def exists(self, product_id: str) -> bool: ...


class ProductAggregateWriter(ABC):
    """The product's denormalized rating fields."""

    @abstractmethod
    def write(self, product_id: str, summary: RatingSummary) -> None:
        """Replace the stored aggregate wholesale. Raises ``AggregateWriteError`` on failure."""
        ...

    @abstractmethod
    def read(self, product_id: str) -> RatingSummary | None:
        """The stored aggregate, or None when the product has none."""
        ...


class OrderLookup(ABC):
    """Read-only view of a customer's delivered orders."""

    @abstractmethod
    def find_delivered_order(self, user_id: str, product_id: str) -> DeliveredOrder | None: ...
