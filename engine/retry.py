import logging
import time

from engine.http_client import redact_url

logger = logging.getLogger(__name__)


def call_with_retry(fn, *, attempts=3, delay=2.0, label="", retry_on=None):
    """Call ``fn`` up to ``attempts`` times with a fixed ``delay`` between tries.

    Returns the first successful result, or ``None`` once every attempt has
    failed. ``retry_on`` decides whether an exception is worth another try;
    when it says no, the call gives up at once. Failures are logged with
    credentials redacted, never raised.
    """
    attempts = max(1, int(attempts))
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as exc:
            error = redact_url(str(exc))
            if retry_on is not None and not retry_on(exc):
                logger.warning("retry_skipped label=%s attempt=%s reason=non_transient error=%s", label, attempt, error)
                break
            if attempt >= attempts:
                logger.warning("retry_exhausted label=%s attempts=%s error=%s", label, attempts, error)
                break
            logger.info("retry attempt=%s/%s label=%s delay=%.1fs error=%s", attempt, attempts, label, delay, error)
            if delay > 0:
                time.sleep(delay)
    return None
