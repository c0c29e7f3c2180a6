"""Request-scoped dependencies: caller identity and wired services.

Authentication happens upstream; the gateway forwards the caller as
``X-User-Id`` and ``X-User-Role`` headers.
"""

from dataclasses import dataclass

from fastapi import Header, HTTPException

from reviews import services
from reviews.config import get_settings
from reviews.domain import reviews
from reviews.queries import ReviewQueries
from reviews.rating.aggregator import RatingAggregator
from reviews.review.mutation import ReviewMutationService
from reviews.review.voting import HelpfulVoteTracker

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Identity:
    user_id: str
    is_admin: bool = False


def current_identity(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Identity:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return Identity(user_id=x_user_id, is_admin=(x_user_role or "").lower() == ADMIN_ROLE)


def get_mutation_service() -> ReviewMutationService:
    return services.mutation_service(reviews, get_settings())


def get_vote_tracker() -> HelpfulVoteTracker:
    return services.vote_tracker(reviews)


def get_queries() -> ReviewQueries:
    return services.review_queries(reviews, get_settings())


def get_aggregator() -> RatingAggregator:
    return services.rating_aggregator(reviews, get_settings())
