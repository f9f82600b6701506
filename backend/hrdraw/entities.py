from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Candidate:
    id: str
    name: str


@dataclass
class Group:
    id: str
    name: str
    members: list[Candidate] = field(default_factory=list)

    def member_names(self) -> list[str]:
        return [member.name for member in self.members]


@dataclass(frozen=True)
class DuplicateReport:
    """Frequency summary of a candidate list keyed by exact name."""
    total: int = 0
    unique_count: int = 0
    duplicate_count: int = 0
    duplicates: frozenset[str] = frozenset()


@dataclass(frozen=True)
class DrawFrame:
    """An intermediate pick shown while a draw is cycling. Never a winner."""
    tick: int
    candidate: Candidate
