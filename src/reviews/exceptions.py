"""Error taxonomy for the Reviews domain.

Field-level problems are raised as ``protean.exceptions.ValidationError`` with a
``{field: [message]}`` payload. Everything else a caller can act on is a
``ReviewError`` with a stable ``kind`` and the HTTP status it maps to.
"""


class ReviewError(Exception):
    """Base class for caller-facing review errors."""

    kind = "review_error"
    status_code = 400

    def __init__(self, messages: dict[str, list[str]]) -> None:
        self.messages = messages
        super().__init__(messages)

    @property
    def message(self) -> str:
        return "; ".join(msg for msgs in self.messages.values() for msg in msgs)


class DuplicateReviewError(ReviewError):
    kind = "duplicate_review"


class NotFoundError(ReviewError):
    kind = "not_found"
    status_code = 404


class ForbiddenError(ReviewError):
    kind = "forbidden"
    status_code = 403


class SelfVoteError(ReviewError):
    kind = "self_vote"


class AlreadyVotedError(ReviewError):
    kind = "already_voted"


class AggregateWriteError(Exception):
    """The product aggregate sink rejected or could not take a write."""
