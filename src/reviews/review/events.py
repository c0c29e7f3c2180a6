"""Domain events for the Review aggregate.

All events are versioned, immutable facts representing state changes.
Events are used for:
- Cross-domain communication (e.g. Notifications thanking reviewers)
- Audit of review activity in the event store

Deletion is a hard delete and is not announced; the product aggregate is the
durable signal of a removed review.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from reviews.domain import reviews


@reviews.event(part_of="Review")
class ReviewSubmitted:
    """A customer submitted a new product review."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True)
    title = String()
    comment = Text(required=True)
    verified_purchase = String(required=True)  # "True"/"False"
    image_count = Integer(default=0)
    submitted_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewEdited:
    """The author or an administrator changed the review content."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    rating = Integer(required=True)
    previous_rating = Integer(required=True)
    title = String()
    comment = Text()
    edited_at = DateTime(required=True)


@reviews.event(part_of="Review")
class HelpfulVoteRecorded:
    """A customer marked someone else's review as helpful."""

    __version__ = 1

    review_id = Identifier(required=True)
    voter_id = Identifier(required=True)
    helpful_count = Integer(required=True)
    voted_at = DateTime(required=True)
