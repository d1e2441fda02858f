"""Split the working tree into a series of focused commits."""

from aicmt.split.grouping import (
    Oracle, UnitGroup, strip_code_fences, parse_group_response, repair_groups, request_groups,
)
from aicmt.split.engine import Checkpoint, GroupPatch, StagingRepository, apply_groups
from aicmt.split.session import SplitPlan, plan_split, execute_split

__all__ = [
    "Oracle",
    "UnitGroup",
    "strip_code_fences",
    "parse_group_response",
    "repair_groups",
    "request_groups",
    "Checkpoint",
    "GroupPatch",
    "StagingRepository",
    "apply_groups",
    "SplitPlan",
    "plan_split",
    "execute_split",
]
