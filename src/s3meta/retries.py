#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import time
from collections.abc import Callable
from dataclasses import dataclass

from .exceptions import RetryError
from .interfaces import retries as retries_interface

DEFAULT_MAX_ATTEMPTS: int = 5
DEFAULT_TOTAL_TIMEOUT: float = 5.0
DEFAULT_DELAY: float = 0.2


@dataclass(kw_only=True, frozen=True)
class RetryPolicy:
    """Attempt budget applied to every request sent by a client."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    """Upper limit on total number of attempts made, including the initial attempt."""

    total_timeout: float = DEFAULT_TOTAL_TIMEOUT
    """Seconds after the first attempt starts past which no retry is started.

    An attempt already in flight is never interrupted, so a call can overrun this
    budget by at most one delay plus the duration of one attempt.
    """

    delay: float = DEFAULT_DELAY
    """Seconds to wait between a failed attempt and the next one."""

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(
                f"max_attempts must be at least 1, got {self.max_attempts}."
            )
        if self.total_timeout < 0:
            raise ValueError(
                f"total_timeout must not be negative, got {self.total_timeout}."
            )
        if self.delay < 0:
            raise ValueError(f"delay must not be negative, got {self.delay}.")


class FixedRetryBackoffStrategy(retries_interface.RetryBackoffStrategy):
    def __init__(self, *, delay: float = DEFAULT_DELAY):
        """Constant backoff: every retry waits the same ``delay`` seconds.

        :param delay: Timespan in seconds returned for every retry attempt.
        """
        self._delay = delay

    def compute_next_backoff_delay(self, retry_attempt: int) -> float:
        """Calculate timespan in seconds to delay before next retry.

        :param retry_attempt: The index of the retry attempt that is about to be made
        after the delay. The initial attempt, before any retries, is index ``0``, and
        will return a delay of ``0``.
        """
        if retry_attempt == 0:
            return 0
        return self._delay


@dataclass(kw_only=True)
class BoundedRetryToken:
    """Retry token carrying the absolute deadline of the operation.

    Retry tokens should always be obtained from an implementation of
    :py:class:`retries_interface.RetryStrategy`.
    """

    retry_count: int
    """Retry count is the total number of attempts minus the initial attempt."""

    retry_delay: float
    """Delay in seconds to wait before the retry attempt."""

    deadline: float
    """Clock reading after which no further attempt is allowed."""

    @property
    def attempt_count(self) -> int:
        """The total number of attempts including the initial attempt and retries."""
        return self.retry_count + 1


class BoundedRetryStrategy(retries_interface.RetryStrategy):
    def __init__(
        self,
        *,
        policy: RetryPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Retry strategy bounded by both an attempt count and an elapsed-time budget.

        Every failure is retried the same way; the error passed to
        :py:meth:`refresh_retry_token_for_retry` is not inspected.

        :param policy: The attempt budget. Defaults to :py:class:`RetryPolicy`.

        :param clock: A callable returning monotonic seconds. Use the default
        ``time.monotonic`` unless you need a controllable clock.
        """
        self.policy = policy or RetryPolicy()
        self.backoff_strategy = FixedRetryBackoffStrategy(delay=self.policy.delay)
        self.max_attempts = self.policy.max_attempts
        self._clock = clock

    def acquire_initial_retry_token(
        self, *, token_scope: str | None = None
    ) -> BoundedRetryToken:
        """Called before any retries (for the first attempt at the operation).

        The operation deadline starts counting here.

        :param token_scope: This argument is ignored by this retry strategy.
        """
        retry_delay = self.backoff_strategy.compute_next_backoff_delay(0)
        return BoundedRetryToken(
            retry_count=0,
            retry_delay=retry_delay,
            deadline=self._clock() + self.policy.total_timeout,
        )

    def refresh_retry_token_for_retry(
        self,
        *,
        token_to_renew: retries_interface.RetryToken,
        error: Exception,
    ) -> BoundedRetryToken:
        """Replace an existing retry token from a failed attempt with a new token.

        :param token_to_renew: The token used for the previous failed attempt. Must
        have been issued by this strategy.

        :param error: The error that triggered the need for a retry.

        :raises RetryError: If the attempt budget or the time budget is spent.
        """
        if not isinstance(token_to_renew, BoundedRetryToken):
            raise TypeError(
                "BoundedRetryStrategy can only refresh BoundedRetryToken, "
                f"got {type(token_to_renew)}."
            )
        if token_to_renew.attempt_count >= self.max_attempts:
            raise RetryError(
                f"Reached maximum number of allowed attempts: {self.max_attempts}"
            )
        if self._clock() > token_to_renew.deadline:
            raise RetryError(
                "Exceeded total attempt timeout of "
                f"{self.policy.total_timeout} seconds after "
                f"{token_to_renew.attempt_count} attempt(s)"
            )
        retry_count = token_to_renew.retry_count + 1
        retry_delay = self.backoff_strategy.compute_next_backoff_delay(retry_count)
        return BoundedRetryToken(
            retry_count=retry_count,
            retry_delay=retry_delay,
            deadline=token_to_renew.deadline,
        )

    def record_success(self, *, token: retries_interface.RetryToken) -> None:
        """Not used by this retry strategy."""
        pass
