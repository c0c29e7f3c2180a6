"""PurchaseVerifier: has the customer received this product?

Best-effort: an unreachable, failing or slow order lookup counts as "not
purchased" and never fails the caller. Each lookup runs on a worker thread so
it can be abandoned once the deadline passes.
"""

import contextvars
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError

import structlog

from reviews.ports import DeliveredOrder, OrderLookup

logger = structlog.get_logger(__name__)


class PurchaseVerifier:
    def __init__(self, orders: OrderLookup, timeout: float = 2.0) -> None:
        self._orders = orders
        self._timeout = timeout

    def delivered_order(self, user_id: str, product_id: str) -> DeliveredOrder | None:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="purchase-check")
        context = contextvars.copy_context()
        future = executor.submit(context.run, self._orders.find_delivered_order, user_id, product_id)
        try:
            return future.result(timeout=self._timeout)
        except FuturesTimeoutError:
            logger.warning(
                "Purchase verification timed out, treating as not purchased",
                user_id=str(user_id),
                product_id=str(product_id),
                timeout=self._timeout,
            )
            return None
        except Exception as exc:
            logger.warning(
                "Purchase verification failed, treating as not purchased",
                user_id=str(user_id),
                product_id=str(product_id),
                error=str(exc),
            )
            return None
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def has_delivered_order(self, user_id: str, product_id: str) -> bool:
        return self.delivered_order(user_id, product_id) is not None
