"""Review store behaviour that needs a real SQL schema behind the repository."""

import pytest
from protean import current_domain
from protean.port.dao import BaseDAO
from reviews.adapters import ProteanReviewStore
from reviews.domain import reviews
from reviews.exceptions import DuplicateReviewError
from reviews.review.review import HelpfulVoter, Review, ReviewImage
from reviews.utils.db import drop_db, setup_db
from sqlalchemy import create_engine, inspect


@pytest.fixture
def sqlite_reviews(tmp_path):
    """Point the default provider at a throwaway SQLite file for one test."""
    memory_config = reviews.config["databases"]["default"]
    reviews.config["databases"]["default"] = {
        "provider": "sqlite",
        "database_uri": f"sqlite:///{tmp_path / 'reviews.db'}",
    }
    reviews.providers._initialize()
    setup_db(reviews)

    yield reviews

    drop_db(reviews)
    reviews.config["databases"]["default"] = memory_config
    reviews.providers._initialize()


def _review(user_id, rating=4, images=None):
    return Review.submit(
        product_id="prod-sql",
        user_id=user_id,
        rating=rating,
        comment="Stored in a SQL table.",
        images=images,
    )


def _pair_count(user_id):
    repo = current_domain.repository_for(Review)
    return repo._dao.query.filter(user_id=user_id, product_id="prod-sql").all().total


class TestReviewerProductUniqueness:
    def test_schema_rejects_second_review_for_pair(self, sqlite_reviews, monkeypatch):
        repo = current_domain.repository_for(Review)
        repo.insert_review(_review("user-1"))

        # Another process inserted the pair after this one looked: the
        # in-process guard and the pre-insert lookup both miss it.
        monkeypatch.setattr(BaseDAO, "_validate_unique", lambda self, entity_obj, create=True: None)

        with pytest.raises(DuplicateReviewError) as exc_info:
            repo.insert_review(_review("user-1", rating=1))

        assert exc_info.value.kind == "duplicate_review"
        assert _pair_count("user-1") == 1

    def test_other_reviewers_still_insert(self, sqlite_reviews):
        store = ProteanReviewStore(sqlite_reviews)
        store.insert(_review("user-1"))
        store.insert(_review("user-2", rating=2))
        assert sorted(store.approved_ratings("prod-sql")) == [2, 4]


class TestDeleteOnSqlite:
    def test_delete_drops_image_and_voter_rows(self, sqlite_reviews):
        store = ProteanReviewStore(sqlite_reviews)
        review = _review("user-1", images=["https://cdn.example.com/one.webp"])
        store.insert(review)
        store.add_helpful_vote(review.id, "user-9")

        store.delete(store.get(review.id))

        assert _pair_count("user-1") == 0
        assert current_domain.repository_for(ReviewImage)._dao.query.filter(review_id=review.id).all().total == 0
        assert current_domain.repository_for(HelpfulVoter)._dao.query.filter(review_id=review.id).all().total == 0


class TestReviewSchema:
    def test_listing_indexes_created(self, sqlite_reviews, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'reviews.db'}")
        indexed = {tuple(index["column_names"]) for index in inspect(engine).get_indexes("review")}
        assert {
            ("product_id", "rating"),
            ("product_id", "helpful_count"),
            ("product_id", "created_at"),
            ("user_id", "created_at"),
            ("is_approved",),
        } <= indexed
