"""Explicit stages of a single project creation.

Only `validated` and `generated` are required; the branch-config and
editor-launch stages are best effort and may be skipped or fail without
rolling anything back.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CreationStage(str, Enum):
    REQUESTED = "requested"
    VALIDATED = "validated"
    BRANCH_CONFIG_ATTEMPTED = "branch_config_attempted"
    GENERATED = "generated"
    EDITOR_LAUNCH_ATTEMPTED = "editor_launch_attempted"


ALLOWED_TRANSITIONS: dict[CreationStage, set[CreationStage]] = {
    CreationStage.REQUESTED: {CreationStage.VALIDATED},
    CreationStage.VALIDATED: {CreationStage.BRANCH_CONFIG_ATTEMPTED, CreationStage.GENERATED},
    CreationStage.BRANCH_CONFIG_ATTEMPTED: {CreationStage.GENERATED},
    CreationStage.GENERATED: {CreationStage.EDITOR_LAUNCH_ATTEMPTED},
    CreationStage.EDITOR_LAUNCH_ATTEMPTED: set(),
}


class IllegalTransitionError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class CreationProgress:
    """Where a creation currently stands, plus every stage it went through."""

    stage: CreationStage = CreationStage.REQUESTED
    history: tuple[CreationStage, ...] = (CreationStage.REQUESTED,)

    def reached(self, stage: CreationStage) -> bool:
        return stage in self.history


def transition(*, current: CreationProgress, to: CreationStage) -> CreationProgress:
    allowed = ALLOWED_TRANSITIONS.get(current.stage, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.stage.value} -> {to.value}")
    return CreationProgress(stage=to, history=(*current.history, to))
