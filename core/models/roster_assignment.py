from django.db import models


class RosterAssignment(models.Model):
	"""A player held by a team for a season. A player is held by at most one team per season."""

	team = models.ForeignKey("core.Team", on_delete=models.CASCADE, related_name="roster_assignments")
	player = models.ForeignKey("core.Player", on_delete=models.CASCADE, related_name="roster_assignments")
	season = models.PositiveIntegerField()
	week = models.PositiveIntegerField(default=1)
	slot = models.CharField(max_length=10, default="BENCH")
	is_starter = models.BooleanField(default=False)

	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:  # noqa: D106
		unique_together = ("player", "season")
		indexes = (models.Index(fields=["team", "season"], name="roster_team_season_idx"),)

	def __str__(self) -> str:
		return f"{self.player} on {self.team} ({self.season}, {self.slot})"
