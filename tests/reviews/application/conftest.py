"""Review services wired to in-memory ports."""

import pytest
from reviews.fakes import (
    InMemoryAggregateSink,
    InMemoryOrderLookup,
    InMemoryProductCatalog,
    InMemoryReviewStore,
)
from reviews.queries import ReviewQueries
from reviews.rating.aggregator import RatingAggregator
from reviews.review.mutation import ReviewMutationService
from reviews.review.verification import PurchaseVerifier
from reviews.review.voting import HelpfulVoteTracker

PRODUCT_ID = "prod-1"


@pytest.fixture()
def store():
    return InMemoryReviewStore()


@pytest.fixture()
def catalog():
    return InMemoryProductCatalog([PRODUCT_ID, "prod-2"])


@pytest.fixture()
def sink():
    return InMemoryAggregateSink()


@pytest.fixture()
def orders():
    return InMemoryOrderLookup()


@pytest.fixture()
def verifier(orders):
    return PurchaseVerifier(orders, timeout=0.2)


@pytest.fixture()
def aggregator(store, sink):
    return RatingAggregator(store, sink)


@pytest.fixture()
def service(store, catalog, aggregator, verifier):
    return ReviewMutationService(store=store, catalog=catalog, aggregator=aggregator, verifier=verifier)


@pytest.fixture()
def tracker(store):
    return HelpfulVoteTracker(store)


@pytest.fixture()
def queries(store, catalog, sink, verifier):
    return ReviewQueries(store=store, catalog=catalog, aggregates=sink, verifier=verifier, max_page_size=20)
