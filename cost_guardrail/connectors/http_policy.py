import asyncio
import random

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class HttpRetryPolicy:
    def __init__(self, max_retries=3, base_delay=1.0, max_delay=30.0):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

    def should_retry(self, attempt, status_code=None):
        if attempt >= self.max_retries:
            return False
        return status_code is None or status_code in RETRYABLE_STATUS

    def delay(self, attempt, retry_after=None):
        if retry_after:
            try:
                return min(self.max_delay, float(retry_after))
            except ValueError:
                pass
        delay = min(self.max_delay, self.base_delay * (2 ** attempt))
        return delay + random.uniform(0, delay * 0.2)

    async def wait_async(self, attempt, retry_after=None):
        await asyncio.sleep(self.delay(attempt, retry_after))
