from django.db import models


class LeagueMember(models.Model):
	"""Membership of a user in a league."""

	class Roles(models.TextChoices):
		"""Roles a member can hold in a league."""

		MEMBER = "member", "Member"
		COMMISSIONER = "commissioner", "Commissioner"

	user = models.ForeignKey("core.User", on_delete=models.CASCADE, related_name="memberships")
	league = models.ForeignKey("core.League", on_delete=models.CASCADE, related_name="members")
	role = models.CharField(max_length=20, choices=Roles.choices, default=Roles.MEMBER)

	joined_at = models.DateTimeField(auto_now_add=True)

	class Meta:  # noqa: D106
		unique_together = ("user", "league")
		indexes = (models.Index(fields=["league", "role"], name="league_member_role_idx"),)

	def __str__(self) -> str:
		return f"{self.user} in {self.league} ({self.role})"
