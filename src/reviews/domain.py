"""Reviews & Ratings bounded context.

Handles review submission with one-review-per-customer-per-product, helpful
voting, and the denormalized per-product rating aggregate. Integrates with the
Ordering domain (verified purchases) and the Catalogue domain (reviewable
products) via cross-domain events.
"""

import structlog
from protean.domain import Domain

from reviews.config import get_settings
from reviews.utils.logging import configure_logging

_settings = get_settings()
configure_logging(level=_settings.log_level, log_dir=_settings.log_dir, log_file_prefix="reviews")

reviews = Domain(name="reviews")

logger = structlog.get_logger(__name__)
