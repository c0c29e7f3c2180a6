"""Service factories.

Builds the review services on top of the protean adapters for a given domain.
Nothing is cached; every call returns freshly wired objects.
"""

from protean.domain import Domain

from reviews.adapters import (
    ProductRatingCatalog,
    ProductRatingWriter,
    ProteanReviewStore,
    VerifiedPurchaseLookup,
)
from reviews.config import ReviewSettings, get_settings
from reviews.queries import ReviewQueries
from reviews.rating.aggregator import RatingAggregator
from reviews.review.mutation import ReviewMutationService
from reviews.review.verification import PurchaseVerifier
from reviews.review.voting import HelpfulVoteTracker


def purchase_verifier(domain: Domain, settings: ReviewSettings | None = None) -> PurchaseVerifier:
    settings = settings or get_settings()
    return PurchaseVerifier(VerifiedPurchaseLookup(domain), timeout=settings.purchase_check_timeout)


def rating_aggregator(domain: Domain, settings: ReviewSettings | None = None) -> RatingAggregator:
    settings = settings or get_settings()
    return RatingAggregator(
        ProteanReviewStore(domain),
        ProductRatingWriter(domain),
        write_attempts=settings.aggregate_write_attempts,
    )


def mutation_service(domain: Domain, settings: ReviewSettings | None = None) -> ReviewMutationService:
    settings = settings or get_settings()
    return ReviewMutationService(
        store=ProteanReviewStore(domain),
        catalog=ProductRatingCatalog(domain),
        aggregator=rating_aggregator(domain, settings),
        verifier=purchase_verifier(domain, settings),
    )


def vote_tracker(domain: Domain) -> HelpfulVoteTracker:
    return HelpfulVoteTracker(ProteanReviewStore(domain))


def review_queries(domain: Domain, settings: ReviewSettings | None = None) -> ReviewQueries:
    settings = settings or get_settings()
    return ReviewQueries(
        store=ProteanReviewStore(domain),
        catalog=ProductRatingCatalog(domain),
        aggregates=ProductRatingWriter(domain),
        verifier=purchase_verifier(domain, settings),
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
