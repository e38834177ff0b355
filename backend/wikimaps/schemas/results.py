"""
WikiMaps Backend: Persistence Gateway Result Types
==================================================

What:  Return shapes for gateway operations that do not raise on the
       expected failure paths.

    Outcome      add_point result: success carrying the stored point, or
                 failure carrying a diagnostic reason. Handlers branch on
                 `outcome.ok` after awaiting the call.
    PointLookup  get_points_by_map_id result, one of
                 FOUND      map exists and has points
                 EMPTY      map exists, no points
                 NOT_FOUND  no map with that id
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from wikimaps.schemas.map import PointResponse

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    ok: bool
    value: Optional[T] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, reason: str) -> "Outcome[T]":
        return cls(ok=False, reason=reason)


class LookupStatus(str, Enum):
    FOUND = "found"
    EMPTY = "empty"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class PointLookup:
    status: LookupStatus
    points: List[PointResponse] = field(default_factory=list)

    @classmethod
    def of(cls, points: List[PointResponse]) -> "PointLookup":
        status = LookupStatus.FOUND if points else LookupStatus.EMPTY
        return cls(status=status, points=list(points))

    @classmethod
    def not_found(cls) -> "PointLookup":
        return cls(status=LookupStatus.NOT_FOUND)

    @property
    def exists(self) -> bool:
        return self.status is not LookupStatus.NOT_FOUND
