from django.db import models


class Pick(models.Model):
	"""Draft capital that teams own and can trade."""

	original_team = models.ForeignKey("core.Team", on_delete=models.CASCADE, related_name="original_picks")
	current_team = models.ForeignKey("core.Team", on_delete=models.CASCADE, related_name="current_picks")
	draft_year = models.PositiveIntegerField()
	round_number = models.PositiveIntegerField()

	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:  # noqa: D106
		ordering = ("draft_year", "round_number")
		unique_together = ("original_team", "draft_year", "round_number")
		indexes = (models.Index(fields=["draft_year", "current_team"], name="pick_year_team_idx"),)

	def __str__(self) -> str:
		suffix = f" (via {self.original_team.name})" if self.current_team_id != self.original_team_id else ""
		return f"{self.draft_year} Round {self.round_number} - {self.current_team.name}{suffix}"
