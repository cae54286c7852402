"""Result containers for single detection and k-NN queries."""

from dataclasses import dataclass, field
from typing import Iterator

from singledetect.detection.point import Point


@dataclass(frozen=True)
class PointDistance:
    """A point paired with its distance to a query origin."""

    point: Point
    distance: float

    @property
    def sort_key(self) -> tuple[float, int]:
        """Ascending distance, ties broken by point uid."""
        return (self.distance, self.point.uid)


@dataclass(frozen=True)
class SingleDetectionResult:
    """Singles found by one refresh. Replaced wholesale on the next one."""

    singles: frozenset[Point] = frozenset()
    elapsed_ms: float = 0.0
    strategy: str = ""

    @property
    def count(self) -> int:
        return len(self.singles)

    def __contains__(self, point: object) -> bool:
        return point in self.singles


@dataclass
class KnnResult:
    """
    Nearest neighbors of an origin point.

    ``neighbors`` is sorted by ascending distance (uid ascending on ties),
    holds at most ``k`` entries and never contains the origin itself.
    """

    origin: Point | None = None
    k: int = 0
    neighbors: list[PointDistance] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def points(self) -> list[Point]:
        return [n.point for n in self.neighbors]

    @property
    def distances(self) -> list[float]:
        return [n.distance for n in self.neighbors]

    @property
    def count(self) -> int:
        return len(self.neighbors)

    def __len__(self) -> int:
        return len(self.neighbors)

    def __iter__(self) -> Iterator[PointDistance]:
        return iter(self.neighbors)
