"""ReviewMutationService: submit, update and delete reviews.

Each mutation validates and authorizes before touching storage, persists, and
only then recomputes the product's rating aggregate, so a caller that reads the
aggregate after a successful response sees its own write.
"""

import structlog
from protean.exceptions import ValidationError

from reviews.exceptions import DuplicateReviewError, ForbiddenError, NotFoundError
from reviews.ports import ProductCatalog, ReviewStore
from reviews.rating.aggregator import RatingAggregator
from reviews.review.review import (
    Review,
    clean_comment,
    clean_images,
    clean_title,
    validate_rating,
)
from reviews.review.verification import PurchaseVerifier

logger = structlog.get_logger(__name__)

EDITABLE_FIELDS = ("rating", "title", "comment", "images")


class ReviewMutationService:
    def __init__(
        self,
        store: ReviewStore,
        catalog: ProductCatalog,
        aggregator: RatingAggregator,
        verifier: PurchaseVerifier,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._aggregator = aggregator
        self._verifier = verifier

    def submit_review(
        self,
        user_id: str,
        product_id: str,
        rating: int,
        comment: str,
        title: str | None = None,
        images: list[str] | None = None,
    ) -> Review:
        """Create the user's review of a product and refresh the product's aggregate."""
        validate_rating(rating)
        clean_title(title)
        clean_comment(comment)
        clean_images(images)

        if not self._catalog.exists(product_id):
            raise NotFoundError({"product_id": ["Product not found"]})

        # Fast path only; the store's insert is what actually rejects a racing duplicate.
        if self._store.find_for_pair(user_id, product_id) is not None:
            raise DuplicateReviewError({"review": ["You have already reviewed this product"]})

        verified = self._verifier.has_delivered_order(user_id, product_id)

        review = Review.submit(
            product_id=product_id,
            user_id=user_id,
            rating=rating,
            comment=comment,
            title=title,
            images=images,
            verified_purchase=verified,
        )
        self._store.insert(review)

        logger.info(
            "Review submitted",
            review_id=str(review.id),
            product_id=str(product_id),
            user_id=str(user_id),
            rating=review.rating,
            verified_purchase=verified,
        )

        self._aggregator.recompute(product_id)
        return review

    def update_review(self, review_id: str, requester_id: str, changes: dict, is_admin: bool = False) -> Review:
        """Apply ``changes`` (any of rating, title, comment, images) to a review."""
        review = self._store.get(review_id)
        self._authorize(review, requester_id, is_admin, "update")

        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError({field: ["This field cannot be changed"] for field in unknown})

        affects_aggregate = review.edit(**changes)
        self._store.save(review)

        logger.info(
            "Review updated",
            review_id=str(review.id),
            product_id=str(review.product_id),
            fields=sorted(changes),
            by_admin=is_admin and not review.is_owned_by(requester_id),
        )

        if affects_aggregate:
            self._aggregator.recompute(str(review.product_id))
        return review

    def delete_review(self, review_id: str, requester_id: str, is_admin: bool = False) -> None:
        """Remove a review and refresh the product's aggregate."""
        review = self._store.get(review_id)
        self._authorize(review, requester_id, is_admin, "delete")

        product_id = str(review.product_id)
        self._store.delete(review)

        logger.info(
            "Review deleted",
            review_id=str(review_id),
            product_id=product_id,
            by_admin=is_admin and not review.is_owned_by(requester_id),
        )

        self._aggregator.recompute(product_id)

    @staticmethod
    def _authorize(review: Review, requester_id: str, is_admin: bool, action: str) -> None:
        if not (is_admin or review.is_owned_by(requester_id)):
            raise ForbiddenError({"review_id": [f"Not authorized to {action} this review"]})
