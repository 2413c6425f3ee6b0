# flatshop/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from flatshop.domain.errors import LockBusy
from flatshop.utils import settings


def lock_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(settings.LOCK_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.01, min=0.01, max=settings.LOCK_RETRY_MAX_WAIT),
        retry=retry_if_exception_type(LockBusy),
    )
