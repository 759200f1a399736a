# src/retry/executor.py — v1
"""Bounded exponential-backoff retry around any fallible operation.

delay(attempt) = min(base_delay * 2 ** (attempt - 1), max_delay)

The operation is invoked at most ``max_attempts`` times. Rate-limit
detection only changes how a failure is logged, never the control flow.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from fusextractor.core.errors import ExhaustedRetries, TransientOperationFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

OnRetry = Callable[[int, str], Any]

_RATE_LIMIT_RE = re.compile(r"429|rate limit|quota", re.IGNORECASE)


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy passed to a BackoffExecutor at construction."""

    max_attempts: int = 5
    base_delay: float = 1.0
    max_delay: float = 60.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be > 0")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")


@dataclass
class RetryStats:
    """Counters accumulated by one executor across all its invocations."""

    calls: int = 0
    succeeded: int = 0
    recovered: int = 0
    exhausted: int = 0
    retries: int = 0
    rate_limited: int = 0
    last_errors: list[str] = field(default_factory=list)


def compute_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay to wait after failed ``attempt`` (1-indexed) before the next one."""
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


def is_rate_limit_error(message: str) -> bool:
    """True when an error message carries a rate-limit or quota signature."""
    return bool(_RATE_LIMIT_RE.search(message or ""))


class BackoffExecutor:
    """Run callables with exponential-backoff retry.

    The sleep function is injectable so callers (and tests) can substitute
    a cancellable wait or a recorder.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        self._config = config or RetryConfig()
        self._sleep = sleep
        self.stats = RetryStats()

    @property
    def config(self) -> RetryConfig:
        return self._config

    def execute(self, operation: Callable[[], T], on_retry: OnRetry | None = None) -> T:
        """Invoke ``operation`` until it succeeds or attempts are exhausted.

        Raises:
            ExhaustedRetries: After ``max_attempts`` failures, carrying the last error.
        """
        cfg = self._config
        self.stats.calls += 1

        for attempt in range(1, cfg.max_attempts + 1):
            try:
                result = operation()
            except Exception as exc:  # noqa: BLE001
                if attempt == cfg.max_attempts:
                    self.stats.exhausted += 1
                    self._remember(exc)
                    logger.error(
                        "Failed after %d attempts. Last error: %s",
                        cfg.max_attempts, _truncate(str(exc)),
                    )
                    raise ExhaustedRetries(cfg.max_attempts, exc) from exc

                rate_limited = is_rate_limit_error(str(exc))
                failure = TransientOperationFailure(attempt, exc, rate_limited=rate_limited)
                delay = compute_delay(attempt, cfg.base_delay, cfg.max_delay)
                self.stats.retries += 1
                if rate_limited:
                    self.stats.rate_limited += 1

                logger.warning(
                    "Attempt %d/%d failed (%s): %s; waiting %.1fs before retry",
                    attempt, cfg.max_attempts,
                    "rate_limit" if rate_limited else "error",
                    _truncate(str(exc)), delay,
                    extra={"data": failure.details},
                )
                self._notify(on_retry, attempt, str(exc))
                self._sleep(delay)
                continue

            self.stats.succeeded += 1
            if attempt > 1:
                self.stats.recovered += 1
                logger.info("Succeeded on attempt %d", attempt)
            return result

        # Unreachable: the loop either returns or raises on the last attempt.
        raise AssertionError("retry loop exited without a result")

    def wrap(self, fn: Callable[[Any], T], on_retry: OnRetry | None = None) -> Callable[[Any], T]:
        """Return a one-argument callable that retries ``fn(arg)``."""

        def _wrapped(arg: Any) -> T:
            return self.execute(lambda: fn(arg), on_retry=on_retry)

        _wrapped.__name__ = getattr(fn, "__name__", "wrapped")
        _wrapped.__wrapped__ = fn  # type: ignore[attr-defined]
        return _wrapped

    def _notify(self, on_retry: OnRetry | None, attempt: int, message: str) -> None:
        if on_retry is None:
            return
        try:
            on_retry(attempt, message)
        except Exception:
            logger.warning("on_retry callback raised; ignoring", exc_info=True)

    def _remember(self, exc: BaseException) -> None:
        self.stats.last_errors.append(_truncate(str(exc)))
        del self.stats.last_errors[:-20]


def execute(
    operation: Callable[[], T],
    max_attempts: int = 5,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    on_retry: OnRetry | None = None,
    sleep: Callable[[float], Any] = time.sleep,
) -> T:
    """Convenience: run ``operation`` through a one-off BackoffExecutor."""
    config = RetryConfig(max_attempts=max_attempts, base_delay=base_delay, max_delay=max_delay)
    return BackoffExecutor(config, sleep=sleep).execute(operation, on_retry=on_retry)


def _truncate(text: str, limit: int = 100) -> str:
    return text if len(text) <= limit else text[:limit] + "..."
