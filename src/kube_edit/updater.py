from __future__ import annotations

from typing import Any, Callable, Optional

from .errors import ConflictError
from .retry import retry_on_conflict
from .store import ObjectStore
from .types import DEFAULT_RETRY, ObjectRef, RetryPolicy


def update_with_retry(
	store: ObjectStore,
	ref: ObjectRef,
	mutate: Callable[[Any], Any],
	*,
	policy: RetryPolicy = DEFAULT_RETRY,
	deadline: Optional[float] = None,
	dry_run: bool = False,
	log: Optional[Callable[[str], None]] = None,
) -> Any:
	"""Fetch ``ref``, apply ``mutate`` and replace it, refetching on conflict.

	``mutate`` receives a freshly fetched object on every attempt and may run
	more than once. Returns the object as persisted by the server.
	"""

	def _attempt() -> Any:
		current = store.get(ref)
		if log is not None:
			log(f"fetched {ref} at resourceVersion {current.metadata.resource_version}")
		candidate = mutate(current)
		return store.update(ref, candidate, dry_run=dry_run)

	def _on_conflict(attempt: int, err: ConflictError) -> None:
		if log is not None:
			log(f"conflict on attempt {attempt} for {ref}: {err}")

	return retry_on_conflict(policy, _attempt, deadline=deadline, on_conflict=_on_conflict)
