from django.db import models


class Notification(models.Model):
	"""Model representing a notification for a user."""

	LEVEL_CHOICES = (
		("info", "Info"),
		("warning", "Warning"),
		("error", "Error"),
	)
	user = models.ForeignKey("core.User", on_delete=models.CASCADE, related_name="notifications")
	title = models.CharField(max_length=100, blank=True)
	message = models.CharField(max_length=255)
	is_read = models.BooleanField(default=False)
	priority = models.PositiveIntegerField(
		default=1,
		help_text="Priority of the notification, higher number means higher priority",
	)
	level = models.CharField(
		max_length=10,
		choices=LEVEL_CHOICES,
		default="info",
		help_text="Notification level",
	)
	redirect_to = models.CharField(max_length=255, blank=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:  # noqa: D106
		ordering = ("-created_at",)

	def __str__(self) -> str:
		return f"Notification for {self.user.username}: {self.message}"
