"""Grouping Oracle Client - Turn a model answer into validated commit groups."""

import json
import re
from dataclasses import dataclass, field
from typing import Callable, Sequence

from aicmt.errors import OracleError
from aicmt.git.hunks import DiffUnit
from aicmt.llm.base import LLMError
from aicmt.prompts.grouping import GroupingPromptBuilder

# prompt text -> response text
Oracle = Callable[[str], str]

_FENCE_OPEN_RE = re.compile(r'^```[A-Za-z0-9_-]*[ \t]*\n?')
_FENCE_CLOSE_RE = re.compile(r'\n?```$')


@dataclass
class UnitGroup:
    """One proposed commit: a message and the unit ids it covers."""
    message: str
    ids: list[str] = field(default_factory=list)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` block, if any."""
    trimmed = text.strip()
    if not trimmed.startswith('```'):
        return trimmed
    trimmed = _FENCE_OPEN_RE.sub('', trimmed, count=1)
    return _FENCE_CLOSE_RE.sub('', trimmed).strip()


def _coerce_group(entry) -> UnitGroup | None:
    if not isinstance(entry, dict):
        return None

    message = entry.get('message')
    if not isinstance(message, str) or not message.strip():
        return None

    ids = entry.get('ids')
    if ids is None:
        ids = entry.get('hunks')
    if not isinstance(ids, list):
        return None

    ids = [i.strip() for i in ids if isinstance(i, str) and i.strip()]
    if not ids:
        return None

    return UnitGroup(message=message.strip(), ids=ids)


def parse_group_response(text: str) -> list[UnitGroup]:
    """Parse the oracle's JSON answer, discarding malformed groups."""
    try:
        parsed = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise OracleError(f"Grouping response is not valid JSON: {e.msg}")

    if not isinstance(parsed, list):
        raise OracleError("Grouping response must be a JSON array of groups")

    groups = [g for g in (_coerce_group(entry) for entry in parsed) if g is not None]
    if not groups:
        raise OracleError("Grouping response contained no usable groups")
    return groups


def repair_groups(groups: Sequence[UnitGroup], unit_ids: Sequence[str]) -> list[UnitGroup]:
    """
    Make the groups an exact partition of ``unit_ids``.

    Unknown ids are dropped and a repeated id stays in the first group that
    claims it. Groups left with nothing are removed. Ids no group claimed
    are appended to the last group, in catalog order.
    """
    known = set(unit_ids)
    claimed: set[str] = set()
    repaired: list[UnitGroup] = []

    for group in groups:
        ids = []
        for unit_id in group.ids:
            if unit_id in known and unit_id not in claimed:
                claimed.add(unit_id)
                ids.append(unit_id)
        if ids:
            repaired.append(UnitGroup(message=group.message, ids=ids))

    if not repaired:
        raise OracleError("No proposed group refers to a known change unit")

    missing = [unit_id for unit_id in unit_ids if unit_id not in claimed]
    repaired[-1].ids.extend(missing)
    return repaired


def request_groups(
    units: Sequence[DiffUnit],
    full_diff: str,
    instructions: str,
    oracle: Oracle,
    prompt_builder: GroupingPromptBuilder | None = None,
) -> list[UnitGroup]:
    """Ask the oracle how to group ``units`` and return repaired groups."""
    if not units:
        return []

    prompt = (prompt_builder or GroupingPromptBuilder()).build(units, full_diff, instructions)
    try:
        response = oracle(prompt)
    except (LLMError, OSError) as e:
        raise OracleError(f"Grouping request failed: {e}") from e

    groups = parse_group_response(response)
    return repair_groups(groups, [unit.id for unit in units])
