"""Pydantic request/response schemas for the Reviews API.

The API layer is the external contract; the Review aggregate and the services
are internal domain concepts. Request schemas only check shapes; the domain
applies the field rules so every rule violation reads the same way.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class SubmitReviewRequest(BaseModel):
    product_id: str
    rating: int
    comment: str
    title: str | None = None
    images: list[str] | None = None


class UpdateReviewRequest(BaseModel):
    rating: int | None = None
    title: str | None = None
    comment: str | None = None
    images: list[str] | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class ReviewResponse(BaseModel):
    id: str
    user_id: str
    product_id: str
    rating: int
    title: str
    comment: str
    images: list[str]
    verified_purchase: bool
    helpful_count: int
    is_approved: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReviewPageResponse(BaseModel):
    reviews: list[ReviewResponse]
    total: int
    page: int
    pages: int
    limit: int


class RatingResponse(BaseModel):
    average: float
    count: int
    breakdown: dict[int, int]


class HelpfulCountResponse(BaseModel):
    helpful_count: int


class OrderDetailsResponse(BaseModel):
    order_id: str
    delivered_at: datetime | None = None


class CanReviewResponse(BaseModel):
    can_review: bool
    has_purchased: bool
    has_reviewed: bool
    existing_review_id: str | None = None
    order_details: OrderDetailsResponse | None = None


class StatusResponse(BaseModel):
    status: str = "ok"
