from __future__ import annotations

from collections import Counter
from typing import Sequence

from hrdraw.entities import Candidate, DuplicateReport


def analyze_duplicates(candidates: Sequence[Candidate]) -> DuplicateReport:
    counts = Counter(candidate.name for candidate in candidates)
    duplicates = frozenset(name for name, count in counts.items() if count > 1)
    duplicate_count = sum(count - 1 for count in counts.values() if count > 1)
    return DuplicateReport(
        total=len(candidates),
        unique_count=len(counts),
        duplicate_count=duplicate_count,
        duplicates=duplicates,
    )


def deduplicate(candidates: Sequence[Candidate]) -> list[Candidate]:
    """Keep the first occurrence of every name, in original order."""
    seen: set[str] = set()
    unique: list[Candidate] = []
    for candidate in candidates:
        if candidate.name in seen:
            continue
        seen.add(candidate.name)
        unique.append(candidate)
    return unique
