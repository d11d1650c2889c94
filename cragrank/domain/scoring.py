"""Rarity-weighted scoring rules."""
from typing import Iterable

from cragrank.domain.log import Log
from cragrank.domain.route import Route


class Ascent:
    """A log paired with the state of its route at scoring time."""

    def __init__(self, log: Log, route: Route):
        if log.route_id != route.id:
            raise ValueError(f"Log for {log.route_id} paired with route {route.id}")
        self._log = log
        self._route = route

    @property
    def log(self) -> Log:
        return self._log

    @property
    def route(self) -> Route:
        return self._route


class ClimberScore:
    """(climbed, points) for one climber. Immutable."""

    def __init__(self, climbed: int = 0, points: float = 0.0):
        self._climbed = climbed
        self._points = points

    @property
    def climbed(self) -> int:
        return self._climbed

    @property
    def points(self) -> float:
        return self._points

    def __eq__(self, other) -> bool:
        if not isinstance(other, ClimberScore):
            return NotImplemented
        return self._climbed == other._climbed and self._points == other._points

    def __repr__(self) -> str:
        return f"ClimberScore(climbed={self._climbed}, points={self._points})"


class ScoringRules:
    """A route's points are split evenly among everyone who completed it."""

    @staticmethod
    def route_share(points: float, completion_count: int) -> float:
        # A zero counter means the recount has not caught up with the first
        # completion yet; the full value is awarded.
        if completion_count == 0:
            return points
        return points / completion_count

    @staticmethod
    def score_ascents(ascents: Iterable[Ascent]) -> ClimberScore:
        climbed = 0
        points = 0.0
        for ascent in ascents:
            if not ascent.log.is_completion:
                continue
            climbed += 1
            points += ScoringRules.route_share(
                ascent.route.points, ascent.route.completion_count
            )
        return ClimberScore(climbed=climbed, points=points)
