"""Climber standing -- the scored, ranked view of a User record."""
from cragrank.domain.invariant import require_non_negative_int, require_non_negative_number


class Standing:
    """One row of the leaderboard. position is assigned by ranking."""

    def __init__(
        self,
        climber_id: str,
        name: str = "",
        climbed: int = 0,
        points: float = 0.0,
        position: int | None = None,
    ):
        self._climber_id = climber_id
        self._name = name
        self._climbed = climbed
        self._points = points
        self._position = position

    @property
    def climber_id(self) -> str:
        return self._climber_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def climbed(self) -> int:
        return self._climbed

    @property
    def points(self) -> float:
        return self._points

    @property
    def position(self) -> int | None:
        return self._position

    def with_position(self, position: int) -> "Standing":
        return Standing(self._climber_id, self._name, self._climbed, self._points, position)

    @classmethod
    def from_record(cls, record) -> "Standing":
        """Previously persisted standing. Missing score fields read as zero."""
        data = record.data
        position = data.get("position")
        if position is not None:
            position = require_non_negative_int(record.ref, "position", position)
        return cls(
            climber_id=record.id,
            name=data.get("name") or "",
            climbed=require_non_negative_int(record.ref, "climbed", data.get("climbed", 0)),
            points=require_non_negative_number(record.ref, "points", data.get("points", 0)),
            position=position,
        )

    def to_fields(self) -> dict:
        """Fields merged onto the User record on commit."""
        return {"climbed": self._climbed, "points": self._points, "position": self._position}

    def to_dict(self) -> dict:
        return {
            "id": self._climber_id,
            "name": self._name,
            "position": self._position,
            "climbed": self._climbed,
            "points": self._points,
        }

    def __repr__(self) -> str:
        return (
            f"Standing({self._climber_id!r}, climbed={self._climbed}, "
            f"points={self._points}, position={self._position})"
        )
