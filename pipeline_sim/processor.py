import logging
from typing import Dict, List, Optional

from .branch_predictor import create_predictor, parse_predictor_type
from .hazard_detector import has_data_hazard
from .instructions import Instruction, Program
from .programs import demo_program
from .stage_status import InstructionRuntimeState, Stage, StallCause, previous_stage
from .statistics import PipelineStats

logger = logging.getLogger(__name__)

# Recovery cycles charged to a mispredicted branch
MISPREDICTION_PENALTY = 2


class PipelineProcessor:
    """Single-issue five-stage pipeline with branch prediction.

    One call to :meth:`step` simulates one clock cycle. Instructions are
    scanned in program order; an instruction may be fetched once its
    predecessor has decoded, and a mispredicted branch flushes everything
    behind it, which is then refetched in the following cycles.
    """

    def __init__(self, program: Optional[Program] = None, predictor_type="one-bit"):
        self.program = program if program is not None else demo_program()
        self.predictor_type = parse_predictor_type(predictor_type)
        self._next_predictor_type = self.predictor_type
        self.reset()

    def load_program(self, program: Program):
        """Replaces the simulated program and starts over"""
        self.program = program
        self.reset()

    def set_predictor_type(self, predictor_type):
        """Selects the predictor for the next run; applied by :meth:`reset`"""
        self._next_predictor_type = parse_predictor_type(predictor_type)
        if self._next_predictor_type != self.predictor_type:
            logger.info("Predictor %s selected, takes effect on reset", self._next_predictor_type.value)

    def reset(self):
        """Back to cycle 1 with an empty history and a freshly initialised predictor"""
        predictor = getattr(self, "branch_predictor", None)
        if predictor is not None and predictor.predictor_type == self._next_predictor_type:
            predictor.reset()
        else:
            self.branch_predictor = create_predictor(self._next_predictor_type)
        self.predictor_type = self._next_predictor_type

        # Indexed by program position; None means not fetched (or flushed)
        self.runtime_states: List[Optional[InstructionRuntimeState]] = [None] * len(self.program)
        self.stall_records: List[Dict[int, StallCause]] = [{} for _ in range(len(self.program))]

        self.cycle = 1
        self.max_cycle = 1
        self.stats = PipelineStats()
        logger.debug("Reset: %d instructions, %s predictor", len(self.program), self.predictor_type.value)

    def is_complete(self) -> bool:
        """True once every instruction has written back"""
        return all(state is not None and state.is_retired for state in self.runtime_states)

    def step(self) -> bool:
        """Simulates one cycle. Returns False, changing nothing, once the program has drained."""
        if self.is_complete():
            return False

        cycle = self.cycle
        # Hazards are judged against the state as it stood when the cycle began
        start_states = {
            instruction.id: state.copy()
            for instruction, state in zip(self.program, self.runtime_states)
            if state is not None
        }

        for index, instruction in enumerate(self.program):
            state = self.runtime_states[index]

            if state is None:
                if self._can_fetch(index):
                    state = InstructionRuntimeState()
                    state.complete(Stage.FETCH, cycle)
                    self.runtime_states[index] = state
                    logger.debug("Cycle %d: fetch %s", cycle, instruction)
                continue

            stage = state.next_stage()
            if stage is None or state.cycle_of(previous_stage(stage)) >= cycle:
                continue

            if stage == Stage.DECODE and has_data_hazard(instruction, cycle, start_states):
                self._record_stall(index, cycle, StallCause.DATA_HAZARD)
                self.stats.record_data_stall()
                logger.debug("Cycle %d: %s stalls on a data hazard", cycle, instruction)
                continue

            state.complete(stage, cycle)

            if stage == Stage.EXECUTE and instruction.is_branch:
                if not self._resolve_branch(index, instruction, cycle):
                    # Everything behind the branch is gone for this cycle
                    break

        self.cycle += 1
        self.max_cycle = max(self.max_cycle, self.cycle)

        if self.is_complete():
            logger.info("Program completed at cycle %d", cycle)
        return True

    def run(self, max_cycles: int = 500) -> bool:
        """Steps until the program drains or the cycle counter passes ``max_cycles``"""
        while not self.is_complete() and self.cycle <= max_cycles:
            self.step()
        return self.is_complete()

    def _can_fetch(self, index: int) -> bool:
        """In-order fetch: the previous instruction must already have decoded"""
        if index == 0:
            return True
        previous = self.runtime_states[index - 1]
        return previous is not None and previous.has_completed(Stage.DECODE)

    def _resolve_branch(self, index: int, instruction: Instruction, cycle: int) -> bool:
        """Checks the prediction for a branch leaving execute; returns False on a misprediction"""
        predicted = self.branch_predictor.predict()
        correct = predicted == instruction.actual

        self.stats.record_prediction(correct)
        self.branch_predictor.update(instruction.actual)
        logger.debug("Cycle %d: %s predicted %s, actual %s, predictor now %s",
                     cycle, instruction, predicted.value, instruction.actual.value,
                     self.branch_predictor.state_label)

        if correct:
            return True

        for offset in range(1, MISPREDICTION_PENALTY + 1):
            self._record_stall(index, cycle + offset, StallCause.BRANCH_MISPREDICTION)
        self.stats.record_branch_stalls(MISPREDICTION_PENALTY)

        flushed = self._flush_after(index)
        logger.info("Cycle %d: misprediction on %s, flushed %s", cycle, instruction, flushed or "nothing")
        return False

    def _flush_after(self, index: int) -> List[int]:
        """Discards the runtime state of every younger instruction; returns the ids that were in flight"""
        flushed = []
        for later in range(index + 1, len(self.program)):
            if self.runtime_states[later] is not None:
                flushed.append(self.program[later].id)
            self.runtime_states[later] = None
        return flushed

    def _record_stall(self, index: int, cycle: int, cause: StallCause):
        """One cause per instruction and cycle"""
        self.stall_records[index][cycle] = cause

    def stage_at_cycle(self, index: int, cycle: int) -> Optional[Stage]:
        """Stage the instruction at ``index`` completed during ``cycle``, if any"""
        state = self.runtime_states[index]
        if state is None:
            return None
        for stage, completed_at in state.completed.items():
            if completed_at == cycle:
                return stage
        return None

    def stall_at_cycle(self, index: int, cycle: int) -> Optional[StallCause]:
        """Why the instruction at ``index`` stalled during ``cycle``, if it did"""
        return self.stall_records[index].get(cycle)

    def get_snapshot(self) -> Dict:
        """Plain-data view of the whole simulation, for drivers and tests"""
        instructions = []
        for instruction, state, stalls in zip(self.program, self.runtime_states, self.stall_records):
            instructions.append({
                "id": instruction.id,
                "text": instruction.text,
                "comment": instruction.comment,
                "type": instruction.type.value,
                "depends_on": sorted(instruction.depends_on),
                "actual": instruction.actual.value if instruction.actual else None,
                "stages": state.as_dict() if state is not None else {},
                "stalls": {cycle: stalls[cycle].value for cycle in sorted(stalls)},
            })

        return {
            "cycle": self.cycle,
            "max_cycle": self.max_cycle,
            "complete": self.is_complete(),
            "predictor": {
                "type": self.predictor_type.value,
                "state": self.branch_predictor.state_label,
                "prediction": self.branch_predictor.predict().value,
            },
            "instructions": instructions,
            "stats": self.stats.get_stats(),
        }
