from __future__ import annotations

from typing import Sequence

from hrdraw.entities import Group

EXPORT_FILENAME = "groups_result.csv"
CSV_HEADER = "GroupName,Name,ID"
BOM = "\ufeff"


def _cell(value: str) -> str:
    # commas would shift columns; no quoting is applied
    return value.replace(",", " ")


def build_groups_csv(groups: Sequence[Group]) -> str:
    lines = [CSV_HEADER]
    for group in groups:
        group_name = _cell(group.name)
        for member in group.members:
            lines.append(f"{group_name},{_cell(member.name)},{member.id}")
    return "\n".join(lines) + "\n"


def export_groups_csv(groups: Sequence[Group]) -> bytes:
    """UTF-8 bytes with a leading BOM so spreadsheets detect the encoding."""
    return (BOM + build_groups_csv(groups)).encode("utf-8")
