from rest_framework import serializers

from .models import Notification, Player, Team


class SimpleTeamSerializer(serializers.ModelSerializer):
	owner_username = serializers.CharField(
		source="owner.username",
		read_only=True,
		help_text="Username of the team owner",
	)

	class Meta:
		model = Team
		fields = ("id", "name", "league", "owner", "owner_username")
		read_only_fields = fields


class SimplePlayerSerializer(serializers.ModelSerializer):
	class Meta:
		model = Player
		fields = ("id", "first_name", "last_name", "position")
		read_only_fields = fields


class NotificationSerializer(serializers.ModelSerializer):
	class Meta:
		model = Notification
		fields = "__all__"
		read_only_fields = ["id", "user", "title", "message", "priority", "level", "redirect_to", "created_at", "updated_at"]
