import time
import functools
from httpx import ReadError, ConnectError, RemoteProtocolError
import logging

logger = logging.getLogger(__name__)

TRANSIENT_MARKERS = (
    "DECRYPTION_FAILED_OR_BAD_RECORD_MAC",
    "Connection reset by peer",
    "Server disconnected",
)

def _is_transient(error: Exception) -> bool:
    if isinstance(error, (ReadError, ConnectError, RemoteProtocolError)):
        return True
    message = str(error)
    return any(marker in message for marker in TRANSIENT_MARKERS)

def retry_on_transient_error(func=None, *, max_retries: int = 3, delay: float = 0.5):
    """
    A decorator to retry a Supabase call if it fails with an intermittent
    transport error (bad SSL record MAC, dropped connection).
    """
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return fn(*args, **kwargs)
                except Exception as e:
                    if _is_transient(e) and attempt < max_retries - 1:
                        logger.warning(f"Transient error on {fn.__name__}: {e}. Retrying in {delay} seconds... (Attempt {attempt + 1}/{max_retries})")
                        time.sleep(delay)
                    else:
                        logger.error(f"Failed on last attempt or due to a different error: {e}")
                        raise
        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
