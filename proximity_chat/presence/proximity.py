"""Nearness between users.

Two positions are near when both the latitude and the longitude differ by
strictly less than the threshold. This is an axis-aligned box test in
degrees, not a geodesic distance; a degree of longitude shrinks towards the
poles, so the box narrows (in metres) at high latitudes.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from .domain import Position
from .domain import User

DEFAULT_THRESHOLD = 0.001


class ProximityDetector:
    def __init__(self, threshold: float = DEFAULT_THRESHOLD):
        if not math.isfinite(threshold) or threshold <= 0:
            msg = f"proximity threshold must be a positive number, got {threshold!r}"
            raise ValueError(msg)
        self.threshold = threshold

    def is_close(self, first: Position, second: Position) -> bool:
        return (
            abs(first.lat - second.lat) < self.threshold
            and abs(first.lng - second.lng) < self.threshold
        )

    def near(self, mover: User, others: Iterable[User]) -> set[str]:
        """Return the ids of every user in ``others`` near ``mover``.

        Linear in the number of users.
        """

        return {
            other.connection_id
            for other in others
            if other.connection_id != mover.connection_id
            and self.is_close(mover.position, other.position)
        }
