"""FastAPI routes for the Reviews & Ratings bounded context.

Each route translates between Pydantic schemas (external contract) and the
review services (internal domain concepts). Handlers are plain functions:
FastAPI runs them on its threadpool, so a stalled purchase check holds one
worker thread instead of the event loop.
"""

import re

from fastapi import APIRouter, Depends
from protean.exceptions import ValidationError

from reviews.api.dependencies import (
    Identity,
    current_identity,
    get_aggregator,
    get_mutation_service,
    get_queries,
    get_vote_tracker,
)
from reviews.api.schemas import (
    CanReviewResponse,
    HelpfulCountResponse,
    OrderDetailsResponse,
    RatingResponse,
    ReviewPageResponse,
    ReviewResponse,
    StatusResponse,
    SubmitReviewRequest,
    UpdateReviewRequest,
)
from reviews.ports import RatingSummary, ReviewPage
from reviews.queries import ReviewQueries
from reviews.rating.aggregator import RatingAggregator
from reviews.review.mutation import ReviewMutationService
from reviews.review.review import Review
from reviews.review.voting import HelpfulVoteTracker

review_router = APIRouter(prefix="/reviews", tags=["reviews"])

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def _checked_id(value: str, field: str) -> str:
    if not _ID_PATTERN.match(value):
        raise ValidationError({field: [f"Invalid {field.replace('_', ' ')}"]})
    return value


def _review_response(review: Review) -> ReviewResponse:
    return ReviewResponse(
        id=str(review.id),
        user_id=str(review.user_id),
        product_id=str(review.product_id),
        rating=review.rating,
        title=review.title or "",
        comment=review.comment,
        images=review.image_urls,
        verified_purchase=bool(review.verified_purchase),
        helpful_count=review.helpful_count or 0,
        is_approved=bool(review.is_approved),
        created_at=review.created_at,
        updated_at=review.updated_at,
    )


def _page_response(page: ReviewPage) -> ReviewPageResponse:
    return ReviewPageResponse(
        reviews=[_review_response(review) for review in page.items],
        total=page.total,
        page=page.page,
        pages=page.pages,
        limit=page.limit,
    )


def _rating_response(summary: RatingSummary) -> RatingResponse:
    return RatingResponse(**summary.as_dict())


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------
@review_router.get("/products/{product_id}/rating", response_model=RatingResponse)
def get_product_rating(
    product_id: str,
    fresh: bool = False,
    queries: ReviewQueries = Depends(get_queries),
    aggregator: RatingAggregator = Depends(get_aggregator),
) -> RatingResponse:
    """The product's rating aggregate; ``fresh`` computes it from reviews instead of the stored copy."""
    _checked_id(product_id, "product_id")
    summary = queries.product_rating(product_id)
    if fresh:
        summary = aggregator.get_average_rating(product_id)
    return _rating_response(summary)


@review_router.get("/products/{product_id}/reviews", response_model=ReviewPageResponse)
def list_product_reviews(
    product_id: str,
    page: int = 1,
    limit: int | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    queries: ReviewQueries = Depends(get_queries),
) -> ReviewPageResponse:
    """Approved reviews of a product."""
    _checked_id(product_id, "product_id")
    result = queries.list_product_reviews(product_id, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
    return _page_response(result)


# ---------------------------------------------------------------------------
# Authenticated
# ---------------------------------------------------------------------------
@review_router.get("/user/my-reviews", response_model=ReviewPageResponse)
def list_my_reviews(
    page: int = 1,
    limit: int | None = None,
    identity: Identity = Depends(current_identity),
    queries: ReviewQueries = Depends(get_queries),
) -> ReviewPageResponse:
    """The caller's own reviews, including unapproved ones."""
    return _page_response(queries.list_user_reviews(identity.user_id, page=page, limit=limit))


@review_router.get("/can-review/{product_id}", response_model=CanReviewResponse)
def can_review_product(
    product_id: str,
    identity: Identity = Depends(current_identity),
    queries: ReviewQueries = Depends(get_queries),
) -> CanReviewResponse:
    """Whether the caller may review the product."""
    _checked_id(product_id, "product_id")
    eligibility = queries.can_user_review(identity.user_id, product_id)
    order = eligibility.order
    return CanReviewResponse(
        can_review=eligibility.can_review,
        has_purchased=eligibility.has_purchased,
        has_reviewed=eligibility.has_reviewed,
        existing_review_id=eligibility.existing_review_id,
        order_details=OrderDetailsResponse(order_id=order.order_id, delivered_at=order.delivered_at) if order else None,
    )


@review_router.post("", status_code=201, response_model=ReviewResponse)
def submit_review(
    body: SubmitReviewRequest,
    identity: Identity = Depends(current_identity),
    service: ReviewMutationService = Depends(get_mutation_service),
) -> ReviewResponse:
    """Submit a new product review."""
    _checked_id(body.product_id, "product_id")
    review = service.submit_review(
        user_id=identity.user_id,
        product_id=body.product_id,
        rating=body.rating,
        comment=body.comment,
        title=body.title,
        images=body.images,
    )
    return _review_response(review)


@review_router.put("/{review_id}", response_model=ReviewResponse)
def update_review(
    review_id: str,
    body: UpdateReviewRequest,
    identity: Identity = Depends(current_identity),
    service: ReviewMutationService = Depends(get_mutation_service),
) -> ReviewResponse:
    """Edit a review. Only the author or an administrator may."""
    _checked_id(review_id, "review_id")
    review = service.update_review(
        review_id,
        identity.user_id,
        body.model_dump(exclude_unset=True),
        is_admin=identity.is_admin,
    )
    return _review_response(review)


@review_router.delete("/{review_id}", response_model=StatusResponse)
def delete_review(
    review_id: str,
    identity: Identity = Depends(current_identity),
    service: ReviewMutationService = Depends(get_mutation_service),
) -> StatusResponse:
    """Delete a review. Only the author or an administrator may."""
    _checked_id(review_id, "review_id")
    service.delete_review(review_id, identity.user_id, is_admin=identity.is_admin)
    return StatusResponse(status="deleted")


@review_router.post("/{review_id}/helpful", response_model=HelpfulCountResponse)
def mark_helpful(
    review_id: str,
    identity: Identity = Depends(current_identity),
    tracker: HelpfulVoteTracker = Depends(get_vote_tracker),
) -> HelpfulCountResponse:
    """Mark someone else's review as helpful."""
    _checked_id(review_id, "review_id")
    return HelpfulCountResponse(helpful_count=tracker.mark_helpful(review_id, identity.user_id))
