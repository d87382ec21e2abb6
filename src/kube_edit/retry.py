from __future__ import annotations

import random
import time
from typing import Callable, Iterator, Optional, TypeVar

from .errors import ConflictError, ConflictExhaustedError, DeadlineExceededError
from .types import RetryPolicy

T = TypeVar("T")


def _backoff_delays(policy: RetryPolicy, *, rand: Callable[[], float] = random.random) -> Iterator[float]:
	"""Yield the sleeps between attempts: at most ``steps - 1`` of them."""
	duration = policy.duration
	for _ in range(policy.steps - 1):
		delay = duration
		if policy.jitter > 0:
			delay = duration + rand() * policy.jitter * duration
		yield delay
		if policy.factor:
			duration = duration * policy.factor
		if policy.cap is not None and duration > policy.cap:
			duration = policy.cap


def retry_on_conflict(
	policy: RetryPolicy,
	fn: Callable[[], T],
	*,
	deadline: Optional[float] = None,
	on_conflict: Optional[Callable[[int, ConflictError], None]] = None,
	sleep: Optional[Callable[[float], None]] = None,
	clock: Optional[Callable[[], float]] = None,
	rand: Optional[Callable[[], float]] = None,
) -> T:
	"""Run ``fn`` until it stops raising ConflictError or the policy runs out.

	Any other exception propagates on first occurrence. ``deadline`` is an
	absolute ``clock()`` value checked before every attempt.
	"""
	sleep = sleep or time.sleep
	clock = clock or time.monotonic
	delays = _backoff_delays(policy, rand=rand or random.random)
	attempt = 0
	while True:
		if deadline is not None and clock() >= deadline:
			raise DeadlineExceededError(f"timed out after {attempt} attempt(s)")
		attempt += 1
		try:
			return fn()
		except ConflictError as e:
			last = e
			if on_conflict is not None:
				on_conflict(attempt, e)

		delay = next(delays, None)
		if delay is None:
			raise ConflictExhaustedError(attempt, last) from last
		sleep(delay)
