"""
Collaborator contracts consumed by the resolution core.

The core only talks to these narrow interfaces; concrete implementations
live in registry_fetcher.py and place_fetcher.py.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, runtime_checkable

from eatsafe.cache import Memoizer
from eatsafe.models import AreaSearchResult, CandidateRecord, PartialSearchResult, PlaceInfo, ViolationHistory


@runtime_checkable
class HygieneRegistry(Protocol):
    """Government hygiene-grade registry."""

    async def find_exact(self, name: str, region: str) -> Optional[CandidateRecord]:
        """The single record whose normalized name equals `name` inside `region`, else None."""
        ...

    async def search_partial(self, name: str, region: str) -> PartialSearchResult:
        """Records whose normalized name contains or is contained by `name` inside `region`."""
        ...


@runtime_checkable
class ViolationSource(Protocol):
    """Administrative action history."""

    async def get_history(self, name: str, region: str) -> ViolationHistory:
        ...


@runtime_checkable
class PlaceProvider(Protocol):
    """Map / rating provider."""

    source: str

    async def search_by_name(self, name: str, region: str) -> Optional[PlaceInfo]:
        ...

    async def search_by_area(self, area: str, category: Optional[str] = None) -> AreaSearchResult:
        ...


@runtime_checkable
class CertificationSource(Protocol):
    """Food safety certification (HACCP) lookup."""

    async def is_certified(self, name: str) -> bool:
        ...


@dataclass
class Collaborators:
    """
    Everything an entry point needs to reach the outside world.

    `places` is ordered: the first provider also serves area listings, and
    earlier providers win when merging price range and category.
    """
    registry: HygieneRegistry
    violations: ViolationSource
    places: List[PlaceProvider] = field(default_factory=list)
    cache: Memoizer = field(default_factory=Memoizer)
    certification: Optional[CertificationSource] = None
