"""Patch Builder - Rebuild an applicable patch from any subset of DiffUnits."""

from typing import Iterable

from aicmt.git.hunks import DiffUnit


def build_patch(units: Iterable[DiffUnit]) -> str:
    """
    Concatenate units into a patch for ``git apply --cached``.

    Files appear in the order they are first seen in ``units``. Within a
    file, units are re-sorted by their parse-time index: the oracle may hand
    ids back in any order, and out-of-order hunks do not apply.
    """
    by_file: dict[str, dict[int, DiffUnit]] = {}
    for unit in units:
        by_file.setdefault(unit.file, {}).setdefault(unit.index, unit)

    if not by_file:
        return ""

    lines: list[str] = []
    for file_units in by_file.values():
        ordered = sorted(file_units.values(), key=lambda u: u.index)
        lines.extend(ordered[0].file_header)
        for unit in ordered:
            lines.extend(unit.content)

    # git apply needs the final newline
    return '\n'.join(lines) + '\n'


def units_by_id(units: Iterable[DiffUnit]) -> dict[str, DiffUnit]:
    """Ordered id -> unit lookup."""
    return {unit.id: unit for unit in units}
