"""Application tests for ReviewMutationService: submit, update, delete and the aggregate."""

import pytest
from protean.exceptions import ValidationError
from reviews.exceptions import DuplicateReviewError, ForbiddenError, NotFoundError
from reviews.fakes import InMemoryReviewStore
from reviews.rating.aggregator import RatingAggregator
from reviews.review.mutation import ReviewMutationService

PRODUCT_ID = "prod-1"


def _submit(service, user_id="user-1", product_id=PRODUCT_ID, **overrides):
    defaults = {
        "rating": 4,
        "comment": "A solid product, would buy again.",
    }
    defaults.update(overrides)
    return service.submit_review(user_id=user_id, product_id=product_id, **defaults)


class TestRatingScenarios:
    def test_first_review_sets_aggregate(self, service, sink):
        _submit(service, "U1", rating=5, comment="Great product, love it!")
        assert sink.read(PRODUCT_ID).as_dict() == {
            "average": 5.0,
            "count": 1,
            "breakdown": {1: 0, 2: 0, 3: 0, 4: 0, 5: 1},
        }

    def test_second_review_updates_aggregate(self, service, sink):
        _submit(service, "U1", rating=5, comment="Great product, love it!")
        _submit(service, "U2", rating=3, comment="It is okay, works fine.")
        summary = sink.read(PRODUCT_ID)
        assert summary.average == 4.0
        assert summary.count == 2
        assert summary.breakdown == {1: 0, 2: 0, 3: 1, 4: 0, 5: 1}

    def test_deleting_a_review_recomputes(self, service, sink):
        first = _submit(service, "U1", rating=5, comment="Great product, love it!")
        _submit(service, "U2", rating=3, comment="It is okay, works fine.")
        service.delete_review(str(first.id), "U1")
        summary = sink.read(PRODUCT_ID)
        assert summary.average == 3.0
        assert summary.count == 1
        assert summary.breakdown == {1: 0, 2: 0, 3: 1, 4: 0, 5: 0}

    def test_duplicate_review_rejected(self, service, sink):
        _submit(service, "U1", rating=5, comment="Great product, love it!")
        before = sink.read(PRODUCT_ID)
        with pytest.raises(DuplicateReviewError) as exc:
            _submit(service, "U1", rating=1, comment="Changed my mind entirely.")
        assert exc.value.kind == "duplicate_review"
        assert sink.read(PRODUCT_ID) == before


class TestSubmitReview:
    def test_review_is_stored(self, service, store):
        review = _submit(service)
        assert store.get(str(review.id)) is review
        assert store.find_for_pair("user-1", PRODUCT_ID) is review

    def test_unknown_product(self, service, store):
        with pytest.raises(NotFoundError) as exc:
            _submit(service, product_id="no-such-product")
        assert exc.value.status_code == 404
        assert store.find_for_pair("user-1", "no-such-product") is None

    def test_validation_runs_before_product_lookup(self, service):
        with pytest.raises(ValidationError) as exc:
            _submit(service, product_id="no-such-product", rating=0)
        assert "rating" in exc.value.messages

    def test_invalid_comment_is_not_stored(self, service, store, sink):
        with pytest.raises(ValidationError):
            _submit(service, comment="short")
        assert store.find_for_pair("user-1", PRODUCT_ID) is None
        assert sink.attempts == 0

    def test_same_user_may_review_other_products(self, service):
        _submit(service, product_id=PRODUCT_ID)
        assert _submit(service, product_id="prod-2") is not None

    def test_verified_purchase(self, service, orders):
        orders.record_delivery("user-1", PRODUCT_ID)
        assert _submit(service).verified_purchase is True

    def test_unverified_purchase(self, service):
        assert _submit(service).verified_purchase is False

    def test_order_lookup_failure_does_not_block_submission(self, service, orders, sink):
        orders.record_delivery("user-1", PRODUCT_ID)
        orders.should_fail = True
        review = _submit(service)
        assert review.verified_purchase is False
        assert sink.read(PRODUCT_ID).count == 1

    def test_slow_order_lookup_counts_as_unverified(self, service, orders):
        orders.record_delivery("user-1", PRODUCT_ID)
        orders.delay = 1.0
        assert _submit(service).verified_purchase is False

    def test_store_rejects_racing_duplicate(self, catalog, sink, verifier):
        class _NoPrecheckStore(InMemoryReviewStore):
            """Behaves as if the concurrent insert landed after the pre-check."""

            def find_for_pair(self, user_id, product_id):
                return None

        store = _NoPrecheckStore()
        aggregator = RatingAggregator(store, sink)
        service = ReviewMutationService(store=store, catalog=catalog, aggregator=aggregator, verifier=verifier)

        _submit(service, "U1", rating=5)
        with pytest.raises(DuplicateReviewError):
            _submit(service, "U1", rating=1)
        assert store.approved_ratings(PRODUCT_ID) == [5]
        assert sink.read(PRODUCT_ID).count == 1

    def test_aggregate_retry_succeeds(self, service, sink):
        sink.fail_next(1)
        _submit(service)
        assert sink.attempts == 2
        assert sink.read(PRODUCT_ID).count == 1

    def test_stale_aggregate_does_not_fail_submission(self, service, store, sink):
        sink.fail_next(2)
        review = _submit(service)
        assert store.get(str(review.id)) is review
        assert sink.read(PRODUCT_ID) is None


class TestUpdateReview:
    def test_author_updates_rating(self, service, sink):
        review = _submit(service, rating=4)
        updated = service.update_review(str(review.id), "user-1", {"rating": 2})
        assert updated.rating == 2
        assert sink.read(PRODUCT_ID).average == 2.0

    def test_content_only_update_skips_recompute(self, service, sink):
        review = _submit(service)
        attempts = sink.attempts
        changes = {"title": "Still great", "comment": "Even better now."}
        updated = service.update_review(str(review.id), "user-1", changes)
        assert updated.title == "Still great"
        assert updated.comment == "Even better now."
        assert sink.attempts == attempts

    def test_stranger_cannot_update(self, service):
        review = _submit(service)
        with pytest.raises(ForbiddenError) as exc:
            service.update_review(str(review.id), "someone-else", {"rating": 1})
        assert exc.value.status_code == 403
        assert review.rating == 4

    def test_admin_can_update(self, service, sink):
        review = _submit(service)
        service.update_review(str(review.id), "admin-1", {"rating": 1}, is_admin=True)
        assert sink.read(PRODUCT_ID).average == 1.0

    def test_immutable_fields_rejected(self, service):
        review = _submit(service)
        with pytest.raises(ValidationError) as exc:
            service.update_review(str(review.id), "user-1", {"product_id": "prod-2", "verified_purchase": True})
        assert set(exc.value.messages) == {"product_id", "verified_purchase"}
        assert str(review.product_id) == PRODUCT_ID

    def test_invalid_update_rejected(self, service):
        review = _submit(service)
        with pytest.raises(ValidationError):
            service.update_review(str(review.id), "user-1", {"rating": 7})
        assert review.rating == 4

    def test_unknown_review(self, service):
        with pytest.raises(NotFoundError):
            service.update_review("missing", "user-1", {"rating": 3})


class TestDeleteReview:
    def test_author_deletes(self, service, store, sink):
        review = _submit(service)
        service.delete_review(str(review.id), "user-1")
        with pytest.raises(NotFoundError):
            store.get(str(review.id))
        assert sink.read(PRODUCT_ID).as_dict() == {
            "average": 0.0,
            "count": 0,
            "breakdown": {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
        }

    def test_stranger_cannot_delete(self, service, store):
        review = _submit(service)
        with pytest.raises(ForbiddenError):
            service.delete_review(str(review.id), "someone-else")
        assert store.get(str(review.id)) is review

    def test_admin_can_delete(self, service, store):
        review = _submit(service)
        service.delete_review(str(review.id), "admin-1", is_admin=True)
        assert store.find_for_pair("user-1", PRODUCT_ID) is None

    def test_user_may_review_again_after_delete(self, service):
        review = _submit(service)
        service.delete_review(str(review.id), "user-1")
        assert _submit(service, rating=2).rating == 2

    def test_unknown_review(self, service):
        with pytest.raises(NotFoundError):
            service.delete_review("missing", "user-1")
