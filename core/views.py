from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from core.stores import DjangoMembershipStore

from .models import Notification, Player, Team
from .serializers import NotificationSerializer, SimplePlayerSerializer, SimpleTeamSerializer


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def team_assets_view(request, pk):
	"""List the players and draft picks a team can currently trade. Only visible to members of its league."""
	team = generics.get_object_or_404(Team.objects.select_related("league"), pk=pk)

	if not DjangoMembershipStore.is_member(request.user.pk, team.league_id):
		return Response({"detail": "You are not a member of this league."}, status=status.HTTP_403_FORBIDDEN)

	players = Player.objects.filter(roster_assignments__team=team, roster_assignments__season=team.league.season)

	return Response(
		{
			"team": SimpleTeamSerializer(team).data,
			"players": SimplePlayerSerializer(players, many=True).data,
			"picks": [
				{"round": pick.round_number, "year": pick.draft_year, "original_owner": pick.original_team_id}
				for pick in team.current_picks.order_by("draft_year", "round_number")
			],
		},
	)


class NotificationView(generics.ListAPIView, generics.RetrieveUpdateAPIView):
	queryset = Notification.objects.all()
	serializer_class = NotificationSerializer
	permission_classes = (permissions.IsAuthenticated,)

	def get_queryset(self):
		return self.queryset.filter(user=self.request.user).order_by("-created_at")
