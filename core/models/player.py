from django.db import models


class Player(models.Model):
	"""A real-world player that fantasy teams can roster."""

	first_name = models.CharField(max_length=50)
	last_name = models.CharField(max_length=50)
	position = models.CharField(max_length=10, blank=True)

	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:  # noqa: D106
		ordering = ("last_name", "first_name")

	def __str__(self) -> str:
		return f"{self.first_name} {self.last_name}"
