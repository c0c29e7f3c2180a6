"""Review aggregate (CQRS) — the core of the Reviews & Ratings domain.

A Review is one customer's rating and comment for one product. Reviews are
auto-approved on submission; ``is_approved`` gates both aggregate inclusion
and public listing visibility.

Immutable after creation: ``user_id``, ``product_id``, ``verified_purchase``.
``helpful_count`` is always derived from ``helpful_voters`` and never written
on its own.
"""

import re
from datetime import UTC, datetime

from protean import Index, atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from reviews.domain import reviews
from reviews.exceptions import AlreadyVotedError, SelfVoteError
from reviews.review.events import HelpfulVoteRecorded, ReviewEdited, ReviewSubmitted

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()

MIN_RATING = 1
MAX_RATING = 5
TITLE_MAX_LENGTH = 100
COMMENT_MIN_LENGTH = 10
COMMENT_MAX_LENGTH = 1000
MAX_IMAGES = 4

_IMAGE_URL = re.compile(r"^https?://.+\.(jpg|jpeg|png|gif|webp)$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------
def validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError({"rating": ["Rating must be a whole number between 1 and 5"]})
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValidationError({"rating": ["Rating must be between 1 and 5"]})
    return rating


def clean_title(title) -> str | None:
    if title is None:
        return None
    if not isinstance(title, str):
        raise ValidationError({"title": ["Title must be text"]})
    title = title.strip()
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError({"title": [f"Title cannot exceed {TITLE_MAX_LENGTH} characters"]})
    return title


def clean_comment(comment) -> str:
    if not isinstance(comment, str):
        raise ValidationError({"comment": ["Comment is required"]})
    comment = comment.strip()
    if len(comment) < COMMENT_MIN_LENGTH:
        raise ValidationError({"comment": [f"Comment must be at least {COMMENT_MIN_LENGTH} characters long"]})
    if len(comment) > COMMENT_MAX_LENGTH:
        raise ValidationError({"comment": [f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters"]})
    return comment


def clean_images(images) -> list[str]:
    if images is None:
        return []
    images = list(images)
    if len(images) > MAX_IMAGES:
        raise ValidationError({"images": [f"Cannot upload more than {MAX_IMAGES} images"]})
    for url in images:
        if not isinstance(url, str) or not _IMAGE_URL.match(url):
            raise ValidationError({"images": [f"{url} is not a valid image URL"]})
    return images


def reviewer_product_key(user_id, product_id) -> str:
    """Storage key backing the one-review-per-customer-per-product constraint."""
    return f"{user_id}:{product_id}"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@reviews.entity(part_of="Review")
class ReviewImage:
    """A photo attached to a review."""

    url = String(required=True, max_length=500)
    display_order = Integer(default=0)


@reviews.entity(part_of="Review")
class HelpfulVoter:
    """A customer who found the review helpful. One per customer."""

    voter_id = Identifier(required=True)
    voted_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@reviews.aggregate(
    indexes=[
        Index("product_id", "rating", desc=("rating",)),
        Index("product_id", "helpful_count", desc=("helpful_count",)),
        Index("product_id", "created_at", desc=("created_at",)),
        Index("user_id", "created_at", desc=("created_at",)),
        Index("is_approved"),
    ]
)
class Review:
    """A customer's review of a product."""

    # Core identifiers
    product_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reviewer_product = String(required=True, max_length=255, unique=True)

    # Content
    rating = Integer(required=True, min_value=MIN_RATING, max_value=MAX_RATING)
    title = String(max_length=TITLE_MAX_LENGTH)
    comment = Text(required=True)

    # Media
    images = HasMany(ReviewImage)

    # Verification
    verified_purchase = Boolean(default=False)

    # Voting
    helpful_voters = HasMany(HelpfulVoter)
    helpful_count = Integer(default=0, min_value=0)

    # Visibility
    is_approved = Boolean(default=True)

    # Timestamps
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def images_cannot_exceed_maximum(self):
        if len(self.images) > MAX_IMAGES:
            raise ValidationError({"images": [f"Cannot upload more than {MAX_IMAGES} images"]})

    @invariant.post
    def comment_length_within_bounds(self):
        if self.comment is not None:
            length = len(self.comment.strip())
            if length < COMMENT_MIN_LENGTH or length > COMMENT_MAX_LENGTH:
                raise ValidationError(
                    {"comment": [f"Comment must be {COMMENT_MIN_LENGTH} to {COMMENT_MAX_LENGTH} characters long"]}
                )

    @invariant.post
    def author_cannot_be_a_helpful_voter(self):
        author = str(self.user_id)
        if any(str(v.voter_id) == author for v in self.helpful_voters):
            raise ValidationError({"helpful_voters": ["The author cannot vote on their own review"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def submit(
        cls,
        product_id,
        user_id,
        rating,
        comment,
        title=None,
        images=None,
        verified_purchase=False,
    ):
        """Submit a new review. Auto-approved under the current policy."""
        rating = validate_rating(rating)
        title = clean_title(title)
        comment = clean_comment(comment)
        images = clean_images(images)

        now = datetime.now(UTC)

        review = cls(
            product_id=product_id,
            user_id=user_id,
            reviewer_product=reviewer_product_key(user_id, product_id),
            rating=rating,
            title=title,
            comment=comment,
            verified_purchase=verified_purchase,
            helpful_count=0,
            is_approved=True,
            created_at=now,
            updated_at=now,
        )

        for i, url in enumerate(images):
            review.add_images(ReviewImage(url=url, display_order=i))

        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                product_id=str(product_id),
                user_id=str(user_id),
                rating=rating,
                title=title,
                comment=comment,
                verified_purchase=str(verified_purchase),
                image_count=len(images),
                submitted_at=now,
            )
        )

        return review

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def image_urls(self) -> list[str]:
        return [img.url for img in sorted(self.images, key=lambda img: img.display_order or 0)]

    @property
    def helpful_voter_ids(self) -> set[str]:
        return {str(v.voter_id) for v in self.helpful_voters}

    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    # -------------------------------------------------------------------
    # Edit
    # -------------------------------------------------------------------
    def edit(self, rating=_UNSET, title=_UNSET, comment=_UNSET, images=_UNSET) -> bool:
        """Change rating, title, comment or images.

        Every provided field is validated before anything is applied.
        Returns True when the change can affect the product aggregate.
        """
        new_rating = validate_rating(rating) if rating is not _UNSET else self.rating
        new_title = clean_title(title) if title is not _UNSET else self.title
        new_comment = clean_comment(comment) if comment is not _UNSET else self.comment
        new_images = clean_images(images) if images is not _UNSET else None

        previous_rating = self.rating
        now = datetime.now(UTC)

        with atomic_change(self):
            self.rating = new_rating
            self.title = new_title
            self.comment = new_comment
            self.updated_at = now

        if new_images is not None:
            for image in list(self.images):
                self.remove_images(image)
            for i, url in enumerate(new_images):
                self.add_images(ReviewImage(url=url, display_order=i))

        self.raise_(
            ReviewEdited(
                review_id=str(self.id),
                product_id=str(self.product_id),
                rating=new_rating,
                previous_rating=previous_rating,
                title=new_title,
                comment=new_comment,
                edited_at=now,
            )
        )

        return bool(self.is_approved) and new_rating != previous_rating

    # -------------------------------------------------------------------
    # Voting
    # -------------------------------------------------------------------
    def mark_helpful(self, voter_id) -> int:
        """Record ``voter_id`` as finding this review helpful.

        Cannot vote on own review. Cannot vote twice.
        """
        if self.is_owned_by(voter_id):
            raise SelfVoteError({"voter_id": ["You cannot mark your own review as helpful"]})

        if str(voter_id) in self.helpful_voter_ids:
            raise AlreadyVotedError({"voter_id": ["You have already marked this review as helpful"]})

        now = datetime.now(UTC)

        with atomic_change(self):
            self.add_helpful_voters(HelpfulVoter(voter_id=voter_id, voted_at=now))
            self.helpful_count = len(self.helpful_voters)
            self.updated_at = now

        self.raise_(
            HelpfulVoteRecorded(
                review_id=str(self.id),
                voter_id=str(voter_id),
                helpful_count=self.helpful_count,
                voted_at=now,
            )
        )

        return self.helpful_count
