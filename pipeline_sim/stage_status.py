from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class PipelineStateError(RuntimeError):
    """Stage history would become inconsistent"""


class Stage(Enum):
    FETCH = "F"
    DECODE = "D"
    EXECUTE = "E"
    MEMORY = "M"
    WRITEBACK = "W"


STAGE_ORDER = [Stage.FETCH, Stage.DECODE, Stage.EXECUTE, Stage.MEMORY, Stage.WRITEBACK]


class StallCause(Enum):
    DATA_HAZARD = "SD"
    BRANCH_MISPREDICTION = "SB"


@dataclass
class InstructionRuntimeState:
    """Cycle at which each stage was completed by one in-flight instruction"""
    completed: Dict[Stage, int] = field(default_factory=dict)

    def has_completed(self, stage: Stage) -> bool:
        """Whether ``stage`` has been completed"""
        return stage in self.completed

    def cycle_of(self, stage: Stage) -> Optional[int]:
        """Cycle in which ``stage`` completed, None if not yet"""
        return self.completed.get(stage)

    def next_stage(self) -> Optional[Stage]:
        """First stage not completed yet, None once retired"""
        for stage in STAGE_ORDER:
            if stage not in self.completed:
                return stage
        return None

    def complete(self, stage: Stage, cycle: int):
        """Marks ``stage`` completed at ``cycle``; stages must complete in order, each in a later cycle"""
        if stage in self.completed:
            raise PipelineStateError(f"{stage.name} already completed at cycle {self.completed[stage]}")
        if stage != self.next_stage():
            raise PipelineStateError(f"{stage.name} cannot complete before {self.next_stage().name}")
        previous = previous_stage(stage)
        if previous is not None and self.completed[previous] >= cycle:
            raise PipelineStateError(
                f"{stage.name} at cycle {cycle} is not after {previous.name} "
                f"at cycle {self.completed[previous]}"
            )
        self.completed[stage] = cycle

    @property
    def fetched_at(self) -> Optional[int]:
        return self.completed.get(Stage.FETCH)

    @property
    def is_retired(self) -> bool:
        return Stage.WRITEBACK in self.completed

    def copy(self) -> "InstructionRuntimeState":
        """Independent copy of the stage history"""
        return InstructionRuntimeState(dict(self.completed))

    def as_dict(self) -> Dict[str, int]:
        """Stage letter to completion cycle, in pipeline order"""
        return {stage.value: self.completed[stage] for stage in STAGE_ORDER if stage in self.completed}


def previous_stage(stage: Stage) -> Optional[Stage]:
    """Stage that precedes ``stage`` in the pipeline"""
    position = STAGE_ORDER.index(stage)
    return STAGE_ORDER[position - 1] if position > 0 else None
