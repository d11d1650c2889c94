"""Route entity -- a climbable line with a fixed base point value."""
from cragrank.domain.invariant import (
    MalformedRecordError,
    require_non_negative_int,
    require_non_negative_number,
)


class Route:
    """
    Read model of a stored route.
    completion_count is denormalized and only ever written by the
    completion counter.
    """

    def __init__(self, route_id: str, name: str, points: float, completion_count: int = 0):
        if not route_id:
            raise ValueError("Route id cannot be empty")
        self._id = route_id
        self._name = name or ""
        self._points = points
        self._completion_count = completion_count

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def points(self) -> float:
        return self._points

    @property
    def completion_count(self) -> int:
        return self._completion_count

    @classmethod
    def from_record(cls, record) -> "Route":
        """Build from a store record, raising MalformedRecordError on bad data."""
        data = record.data
        points = require_non_negative_number(record.ref, "points", data.get("points"))
        count = require_non_negative_int(
            record.ref, "completion_count", data.get("completion_count", 0)
        )
        name = data.get("name", "")
        if not isinstance(name, str):
            raise MalformedRecordError(record.ref, f"name must be a string, got {name!r}")
        return cls(route_id=record.id, name=name, points=points, completion_count=count)

    def to_dict(self) -> dict:
        return {
            "id": self._id,
            "name": self._name,
            "points": self._points,
            "completion_count": self._completion_count,
        }

    def __repr__(self) -> str:
        return f"Route({self._id!r}, points={self._points}, completion_count={self._completion_count})"
