from dataclasses import dataclass, field
from typing import Any, NamedTuple

from django.core.exceptions import ValidationError


class PickDescriptor(NamedTuple):
	"""Identifies a draft pick independently of who currently holds it."""

	round: int
	year: int
	original_owner: int

	def __str__(self) -> str:
		return f"{self.year} round {self.round} (team {self.original_owner})"


@dataclass(frozen=True)
class AssetBundle:
	"""A set of tradeable assets: player ids and draft pick descriptors."""

	players: frozenset[int] = field(default_factory=frozenset)
	picks: frozenset[PickDescriptor] = field(default_factory=frozenset)

	@classmethod
	def from_payload(cls, payload: dict[str, Any] | None) -> "AssetBundle":
		"""
		Build a bundle from its JSON representation.

		Args:
			payload (dict[str, Any] | None): A mapping with ``players`` and ``picks`` keys.

		Raises:
			ValidationError: If a pick entry is missing one of its fields.

		Returns:
			AssetBundle: The parsed bundle.
		"""
		payload = payload or {}

		try:
			picks = frozenset(
				PickDescriptor(
					round=int(pick["round"]),
					year=int(pick["year"]),
					original_owner=int(pick["original_owner"]),
				)
				for pick in payload.get("picks", [])
			)

		except (KeyError, TypeError, ValueError) as e:
			raise ValidationError(f"Malformed draft pick in asset payload: {e}") from e

		return cls(players=frozenset(int(player_id) for player_id in payload.get("players", [])), picks=picks)

	def to_payload(self) -> dict[str, list]:
		"""Return the JSON representation stored on trades."""  # noqa: DOC201
		return {
			"players": sorted(self.players),
			"picks": [pick._asdict() for pick in sorted(self.picks)],
		}

	def __bool__(self) -> bool:
		return bool(self.players or self.picks)

	def __len__(self) -> int:
		return len(self.players) + len(self.picks)

	def __sub__(self, other: "AssetBundle") -> "AssetBundle":
		return AssetBundle(players=self.players - other.players, picks=self.picks - other.picks)

	def __or__(self, other: "AssetBundle") -> "AssetBundle":
		return AssetBundle(players=self.players | other.players, picks=self.picks | other.picks)

	def __and__(self, other: "AssetBundle") -> "AssetBundle":
		return AssetBundle(players=self.players & other.players, picks=self.picks & other.picks)

	def describe(self) -> list[str]:
		"""Human readable labels, used in error details and notifications."""  # noqa: DOC201
		return [f"player {player_id}" for player_id in sorted(self.players)] + [str(pick) for pick in sorted(self.picks)]
