from __future__ import annotations

from typing import Optional


class EditError(Exception):
	"""Base class for every failure a plugin command reports."""

	exit_code = 1


class UsageError(EditError):
	exit_code = 2


class ConfigError(EditError):
	pass


class NotFoundError(EditError):
	pass


class RemoteError(EditError):
	def __init__(self, message: str, *, status: Optional[int] = None) -> None:
		super().__init__(message)
		self.status = status


class ConflictError(RemoteError):
	"""The server rejected a write carrying a stale resourceVersion."""

	def __init__(self, message: str) -> None:
		super().__init__(message, status=409)


class ConflictExhaustedError(EditError):
	def __init__(self, attempts: int, last: Optional[ConflictError] = None) -> None:
		detail = str(last) if last is not None else "conflict"
		super().__init__(f"update failed: {detail} (gave up after {attempts} attempt(s))")
		self.attempts = attempts
		self.last = last


class DeadlineExceededError(EditError):
	pass
