"""Shared BDD fixtures and step definitions for the Reviews domain."""

import pytest
from pytest_bdd import given, parsers, then
from reviews.fakes import (
    InMemoryAggregateSink,
    InMemoryOrderLookup,
    InMemoryProductCatalog,
    InMemoryReviewStore,
)
from reviews.rating.aggregator import RatingAggregator
from reviews.review.mutation import ReviewMutationService
from reviews.review.verification import PurchaseVerifier
from reviews.review.voting import HelpfulVoteTracker


@pytest.fixture()
def error():
    """Container for captured review errors."""
    return {"exc": None}


@pytest.fixture()
def store():
    return InMemoryReviewStore()


@pytest.fixture()
def catalog():
    return InMemoryProductCatalog()


@pytest.fixture()
def sink():
    return InMemoryAggregateSink()


@pytest.fixture()
def service(store, catalog, sink):
    return ReviewMutationService(
        store=store,
        catalog=catalog,
        aggregator=RatingAggregator(store, sink),
        verifier=PurchaseVerifier(InMemoryOrderLookup(), timeout=0.5),
    )


@pytest.fixture()
def tracker(store):
    return HelpfulVoteTracker(store)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a reviewable product "{product_id}"'))
def reviewable_product(catalog, product_id):
    catalog.add(product_id)


@given(parsers.cfparse('user "{user_id}" reviewed product "{product_id}" with rating {rating:d}'))
def existing_review(service, user_id, product_id, rating):
    service.submit_review(
        user_id=user_id,
        product_id=product_id,
        rating=rating,
        comment=f"Review by {user_id}, long enough to pass.",
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the request is rejected as "{kind}"'))
def request_rejected(error, kind):
    assert error["exc"] is not None
    assert error["exc"].kind == kind
