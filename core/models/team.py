from django.db import models


class Team(models.Model):
	"""Model representing a fantasy team inside a league."""

	name = models.CharField(max_length=100)
	league = models.ForeignKey("core.League", on_delete=models.CASCADE, related_name="teams")
	owner = models.ForeignKey("core.User", on_delete=models.CASCADE, related_name="teams")
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:  # noqa: D106
		unique_together = ("league", "owner")

	def __str__(self) -> str:
		return self.name

	def roster(self, season: int) -> models.QuerySet["RosterAssignment"]:  # noqa: F821
		"""Return the roster assignments of this team for a season."""
		return self.roster_assignments.filter(season=season).select_related("player")
