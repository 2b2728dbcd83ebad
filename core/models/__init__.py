from .league import League
from .league_member import LeagueMember
from .notification import Notification
from .pick import Pick
from .player import Player
from .roster_assignment import RosterAssignment
from .team import Team
from .user import User

__all__ = [
	"League",
	"LeagueMember",
	"Notification",
	"Pick",
	"Player",
	"RosterAssignment",
	"Team",
	"User",
]
