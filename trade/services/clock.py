from datetime import datetime, timedelta
from typing import Protocol

from django.utils import timezone


class Clock(Protocol):
	"""Source of the current time for the trade engine."""

	def now(self) -> datetime: ...


class SystemClock:
	"""Wall clock, timezone aware."""

	@staticmethod
	def now() -> datetime:  # noqa: D102
		return timezone.now()


class FixedClock:
	"""A clock that only moves when told to."""

	def __init__(self, at: datetime) -> None:
		if timezone.is_naive(at):
			at = timezone.make_aware(at)

		self.current = at

	def now(self) -> datetime:  # noqa: D102
		return self.current

	def advance(self, **delta: float) -> datetime:
		"""
		Move the clock forward.

		Args:
			**delta: Keyword arguments accepted by ``datetime.timedelta``.

		Returns:
			datetime: The new current time.
		"""
		self.current += timedelta(**delta)
		return self.current
