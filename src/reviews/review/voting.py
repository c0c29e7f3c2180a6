"""HelpfulVoteTracker: record that a customer found a review helpful.

Cannot vote on own review. Cannot vote twice. The count shown on a review is
the size of its voter set; the store adds the voter and derives the count in
one atomic step. Votes never touch the product's rating aggregate.
"""

import structlog

from reviews.ports import ReviewStore

logger = structlog.get_logger(__name__)


class HelpfulVoteTracker:
    def __init__(self, store: ReviewStore) -> None:
        self._store = store

    def mark_helpful(self, review_id: str, voter_id: str) -> int:
        """Add ``voter_id`` to the review's helpful voters; returns the new helpful count."""
        count = self._store.add_helpful_vote(review_id, voter_id)
        logger.info("Helpful vote recorded", review_id=str(review_id), voter_id=str(voter_id), helpful_count=count)
        return count
