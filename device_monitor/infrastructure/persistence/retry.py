"""Retry con backoff exponencial para operaciones del store."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuración para retry con backoff."""

    max_attempts: int = 3
    base_delay: float = 1.0  # segundos
    max_delay: float = 10.0  # segundos
    exponential_base: float = 2.0
    jitter: bool = True
    retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,)

    def calculate_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-indexed)."""
        delay = self.base_delay * (self.exponential_base ** (attempt - 1))
        delay = min(delay, self.max_delay)

        if self.jitter:
            # ±25%
            jitter_range = delay * 0.25
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0, delay)


class RetryExecutor:
    """Ejecutor de operaciones con retry."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._config = config or RetryConfig()
        self._sleep = sleep

    def execute(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Run ``func``, retrying retryable exceptions with backoff.

        Raises:
            The last exception once attempts are exhausted.
        """
        name = getattr(func, "__name__", repr(func))
        for attempt in range(1, self._config.max_attempts + 1):
            try:
                return func(*args, **kwargs)
            except self._config.retryable_exceptions as e:
                if attempt == self._config.max_attempts:
                    logger.error("RETRY_EXHAUSTED func=%s attempts=%d err=%s", name, attempt, e)
                    raise

                delay = self._config.calculate_delay(attempt)
                logger.warning(
                    "RETRY func=%s attempt=%d/%d delay=%.2fs err=%s",
                    name, attempt, self._config.max_attempts, delay, e,
                )
                self._sleep(delay)

        raise RuntimeError("Retry loop completed without result")
