from django.urls import path

from . import views

urlpatterns = [
	# Team endpoints
	path("teams/<int:pk>/assets/", views.team_assets_view, name="team-assets"),
	# Notification endpoints
	path(
		"notifications/",
		views.NotificationView.as_view(),
		name="notification-list",
	),
	path(
		"notifications/<int:pk>/",
		views.NotificationView.as_view(),
		name="notification-actions",
	),
]
