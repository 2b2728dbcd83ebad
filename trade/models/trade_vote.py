from django.db import models

from trade.enums.vote_types import VoteTypes


class TradeVote(models.Model):
	"""
	A league member's vote on an accepted trade.

	Votes are cast once per ``(trade, user)`` and never edited or deleted. Parties to
	the trade cannot vote on it.
	"""

	trade = models.ForeignKey("trade.Trade", on_delete=models.CASCADE, related_name="votes")
	user = models.ForeignKey("core.User", on_delete=models.CASCADE, related_name="trade_votes")
	team = models.ForeignKey(
		"core.Team",
		null=True,
		blank=True,
		on_delete=models.SET_NULL,
		related_name="trade_votes",
		help_text="Team of the voter, empty for members without a team",
	)
	vote_type = models.CharField(max_length=10, choices=[(vote.value, vote.name.title()) for vote in VoteTypes])
	reason = models.TextField(blank=True)
	cast_at = models.DateTimeField()

	class Meta:  # noqa: D106
		ordering = ("cast_at", "pk")
		constraints = [
			models.UniqueConstraint(fields=["trade", "user"], name="trade_vote_once_per_user"),
		]
		indexes = [models.Index(fields=["trade", "vote_type"], name="trade_vote_type_idx")]

	def __str__(self) -> str:
		return f"{self.user} voted {self.vote_type} on trade {self.trade_id}"
