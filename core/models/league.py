from django.core.validators import MinValueValidator
from django.db import models


class League(models.Model):
	"""A fantasy league and the trade policy its commissioners configured."""

	name = models.CharField(max_length=100)
	season = models.PositiveIntegerField(help_text="Season rosters are currently tracked for")
	current_week = models.PositiveIntegerField(default=1)
	trade_deadline = models.DateField(
		null=True,
		blank=True,
		help_text="Last day trades may be proposed (inclusive). Empty means no deadline",
	)
	trade_votes_needed = models.PositiveIntegerField(
		default=0,
		help_text="Veto votes required to block an accepted trade, 0 disables league voting",
	)
	trade_review_days = models.PositiveIntegerField(
		default=2,
		validators=[MinValueValidator(0)],
		help_text="Length of the review window after a trade is accepted",
	)

	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:  # noqa: D106
		ordering = ("-season", "name")

	def __str__(self) -> str:
		return f"{self.name} ({self.season})"

	@property
	def has_trade_voting(self) -> bool:
		"""Whether accepted trades go through a league review window."""
		return self.trade_votes_needed > 0
