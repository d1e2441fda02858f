"""Split session - Plan and execute a multi-commit split of the working tree."""

from dataclasses import dataclass, field
from typing import Callable

from aicmt.errors import ParseError
from aicmt.git.hunks import DiffUnit, group_by_file, parse_diff
from aicmt.git.patch import build_patch, units_by_id
from aicmt.git.repository import GitRepository
from aicmt.split.engine import Checkpoint, CommitCallback, GroupPatch, apply_groups
from aicmt.split.grouping import Oracle, UnitGroup, request_groups
from aicmt.prompts.grouping import GroupingPromptBuilder


@dataclass
class SplitPlan:
    """Parsed units plus the groups they were sorted into."""
    units: list[DiffUnit]
    groups: list[UnitGroup] = field(default_factory=list)
    raw_diff: str = ""

    @property
    def file_count(self) -> int:
        return len(group_by_file(self.units))

    def units_for(self, group: UnitGroup) -> list[DiffUnit]:
        lookup = units_by_id(self.units)
        return [lookup[unit_id] for unit_id in group.ids if unit_id in lookup]

    def patches(self) -> list[GroupPatch]:
        return [
            GroupPatch(patch=build_patch(self.units_for(group)), message=group.message)
            for group in self.groups
        ]


def plan_split(
    repo: GitRepository,
    oracle: Oracle,
    instructions: str = "",
    context_lines: int = 8,
    prompt_builder: GroupingPromptBuilder | None = None,
    on_units: Callable[[list[DiffUnit]], None] | None = None,
) -> SplitPlan:
    """
    Unstage everything, diff the working tree and ask for groups.

    ``on_units`` sees the parsed units before the oracle is called.
    Raises ParseError when there is nothing to split.
    """
    repo.unstage_all()
    raw_diff = repo.working_diff(context_lines)

    units = parse_diff(raw_diff)
    if not units:
        raise ParseError("No changes to split")
    if on_units:
        on_units(units)

    groups = request_groups(units, raw_diff, instructions, oracle, prompt_builder)
    return SplitPlan(units=units, groups=groups, raw_diff=raw_diff)


def execute_split(repo: GitRepository, plan: SplitPlan, on_commit: CommitCallback | None = None) -> int:
    """Commit each planned group in order, rolling back on failure."""
    checkpoint = Checkpoint.capture(repo)
    return apply_groups(repo, plan.patches(), checkpoint, on_commit)
