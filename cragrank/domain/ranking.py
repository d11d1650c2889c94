"""Leaderboard total order: points descending, then fewer climbs first."""
from typing import Iterable, List

from cragrank.domain.climber import Standing


def ranking_key(standing: Standing) -> tuple:
    # climber_id only makes equal (points, climbed) pairs deterministic
    return (-standing.points, standing.climbed, standing.climber_id)


def rank_standings(standings: Iterable[Standing]) -> List[Standing]:
    """Sort and assign 0-based positions. Returns new Standing objects."""
    ordered = sorted(standings, key=ranking_key)
    return [s.with_position(i) for i, s in enumerate(ordered)]

