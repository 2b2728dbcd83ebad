from django.urls import include, path
from rest_framework import routers

from tradeflow.views import HealthCheckViewSet

router = routers.DefaultRouter()

router.register(r"health", HealthCheckViewSet, basename="health")

urlpatterns = [
	path("api/", include(router.urls)),
	path("api/", include("core.urls")),
	path("api/", include("trade.urls")),
]
