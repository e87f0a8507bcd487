import asyncio
from typing import Awaitable, Callable, TypeVar

from loguru import logger
from poap_mint_client.errors import RetryBudgetExhausted
from poap_mint_client.models import PollingConfig

T = TypeVar("T")


class BackoffEngine:
    """Retry budget for a single poll chain.

    Every scheduled retry waits ``initial_delay * backoff_factor**k`` milliseconds
    before invoking the operation, where ``k`` is the 1-indexed retry number.
    An engine must not be shared between poll chains.
    """

    def __init__(
        self,
        max_retries: int = 20,
        initial_delay: float = 1000.0,
        backoff_factor: float = 1.2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        if initial_delay <= 0:
            raise ValueError(f"initial_delay must be > 0, got {initial_delay}")
        if backoff_factor <= 1:
            raise ValueError(f"backoff_factor must be > 1, got {backoff_factor}")

        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.retries = 0
        self.delay = initial_delay
        self.sleep = sleep
        self.logger = logger

    @classmethod
    def from_config(cls, config: PollingConfig, **kwargs) -> "BackoffEngine":
        return cls(
            max_retries=config.max_retries,
            initial_delay=config.initial_delay,
            backoff_factor=config.backoff_factor,
            **kwargs,
        )

    async def schedule_retry(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Wait for the next backoff delay, then run the operation"""
        if self.retries >= self.max_retries:
            self.logger.error(f"Giving up after {self.retries} retries")
            raise RetryBudgetExhausted(self.max_retries)

        self.retries += 1
        self.delay *= self.backoff_factor

        self.logger.debug(
            f"Retry {self.retries}/{self.max_retries}, waiting {self.delay:.2f}ms"
        )
        await self.sleep(self.delay / 1000)

        return await operation()
