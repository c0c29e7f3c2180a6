"""Repository for the Review aggregate.

Adds the access paths the services need on top of protean's CRUD: lookup by
(user, product), approved reviews of a product, a user's reviews, and the two
writes that must not interleave with a racing request: first insert of a
reviewer/product pair and helpful-vote recording.
"""

import threading

import structlog
from protean import UnitOfWork
from protean.exceptions import ExpectedVersionError, TransactionError, ValidationError
from sqlalchemy.exc import IntegrityError

from reviews.domain import reviews
from reviews.exceptions import DuplicateReviewError
from reviews.review.review import HelpfulVoter, Review, ReviewImage, reviewer_product_key

logger = structlog.get_logger(__name__)

_BATCH_SIZE = 200
_VOTE_ATTEMPTS = 3


def _duplicate_error() -> DuplicateReviewError:
    return DuplicateReviewError({"review": ["You have already reviewed this product"]})


def _is_unique_violation(exc: BaseException) -> bool:
    """True when ``exc`` is, or was caused by, a database integrity violation.

    A violation caught at flush time surfaces as the driver's IntegrityError;
    one caught at commit time arrives wrapped in protean's TransactionError.
    """
    while exc is not None:
        if isinstance(exc, IntegrityError):
            return True
        exc = exc.__cause__
    return False


@reviews.repository(part_of=Review)
class ReviewRepository:
    """Repository for Review aggregate.

    ``reviewer_product`` is declared unique, so SQL providers back the pair
    constraint with a unique index and a losing racer in another process gets
    an integrity error, reported as a duplicate review. The guards below only
    serialize writers inside one process.
    """

    _pair_guard = threading.Lock()
    _vote_guard = threading.Lock()

    def find_for_pair(self, user_id, product_id) -> Review | None:
        result = self._dao.query.filter(reviewer_product=reviewer_product_key(user_id, product_id)).all()
        return result.items[0] if result.items else None

    def add_unique(self, review: Review) -> Review:
        """Insert a new review unless its reviewer already reviewed the product."""
        with self._pair_guard:
            if self.find_for_pair(review.user_id, review.product_id) is not None:
                raise _duplicate_error()
            return self.insert_review(review)

    def insert_review(self, review: Review) -> Review:
        """Insert ``review``, turning a store-level uniqueness violation into DuplicateReviewError."""
        try:
            return self.add(review)
        except ValidationError as exc:
            if "reviewer_product" in getattr(exc, "messages", {}):
                raise _duplicate_error() from exc
            raise
        except (IntegrityError, TransactionError) as exc:
            if _is_unique_violation(exc):
                logger.info(
                    "Concurrent duplicate review rejected by the store",
                    user_id=str(review.user_id),
                    product_id=str(review.product_id),
                )
                raise _duplicate_error() from exc
            raise

    def record_helpful_vote(self, review_id, voter_id) -> int:
        """Add a voter to the review's voter set and persist; returns the new count.

        A concurrent writer in another process surfaces as a version conflict;
        the vote is then re-applied to a fresh copy of the review.
        """
        with self._vote_guard:
            for attempt in range(1, _VOTE_ATTEMPTS + 1):
                review = self.get(review_id)
                count = review.mark_helpful(voter_id)
                try:
                    self.add(review)
                    return count
                except ExpectedVersionError:
                    if attempt == _VOTE_ATTEMPTS:
                        raise
                    logger.info("Helpful vote lost a version race, retrying", review_id=str(review_id), attempt=attempt)

    def remove_review(self, review: Review) -> None:
        """Delete a review together with its images and helpful voters."""
        image_dao = self._domain.repository_for(ReviewImage)._dao
        voter_dao = self._domain.repository_for(HelpfulVoter)._dao
        with UnitOfWork():
            for image in review.images:
                image_dao.delete(image)
            for voter in review.helpful_voters:
                voter_dao.delete(voter)
            self._dao.delete(review)

    def find_all(self, **filters) -> list[Review]:
        """Every review matching ``filters``, read in batches."""
        items = []
        while True:
            result = self._dao.query.filter(**filters).offset(len(items)).limit(_BATCH_SIZE).all()
            items.extend(result.items)
            if not result.items or len(items) >= result.total:
                return items

    def approved_for_product(self, product_id) -> list[Review]:
        return self.find_all(product_id=str(product_id), is_approved=True)

    def page(self, page: int, limit: int, order_by: str, **filters) -> tuple[list[Review], int]:
        result = self._dao.query.filter(**filters).order_by(order_by).offset((page - 1) * limit).limit(limit).all()
        return result.items, result.total
