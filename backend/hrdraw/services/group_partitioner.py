from __future__ import annotations

import random
from typing import Optional, Sequence

from hrdraw.entities import Candidate, Group
from hrdraw.i18n import default_group_label


def clamp_group_size(value: object) -> int:
    """Coerce user input to a group size of at least 1.

    Floats and numeric strings are truncated (``"2.5"`` gives 2); anything
    else that is not a number gives 1.
    """
    try:
        size = int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return 1
    return max(1, size)


def partition(
    people: Sequence[Candidate],
    group_size: int,
    rng: Optional[random.Random] = None,
) -> list[Group]:
    """Shuffle ``people`` and chunk them into groups of at most ``group_size``.

    The last group may be smaller; it is never merged into another group.
    """
    size = clamp_group_size(group_size)
    shuffled = list(people)
    # random.Random.shuffle is Fisher-Yates
    (rng or random.Random()).shuffle(shuffled)

    groups: list[Group] = []
    for offset in range(0, len(shuffled), size):
        groups.append(
            Group(
                id=f"g-{offset}",
                name=default_group_label(len(groups) + 1),
                members=shuffled[offset : offset + size],
            )
        )
    return groups


def _tidy_name(value: object) -> str:
    if not isinstance(value, str):
        return ""
    # single line, no quotes: the name ends up as a raw CSV cell
    return " ".join(value.replace('"', " ").split())


def apply_group_names(groups: Sequence[Group], names: Sequence[str]) -> list[Group]:
    renamed: list[Group] = []
    for index, group in enumerate(groups):
        name = _tidy_name(names[index]) if index < len(names) else ""
        renamed.append(Group(id=group.id, name=name or group.name, members=list(group.members)))
    return renamed
