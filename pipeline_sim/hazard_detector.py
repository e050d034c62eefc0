from typing import Mapping, Optional

from .instructions import Instruction
from .stage_status import InstructionRuntimeState


def has_data_hazard(instruction: Instruction, at_cycle: int,
                    runtime_states: Mapping[int, Optional[InstructionRuntimeState]]) -> bool:
    """True when a producer of ``instruction`` is still in flight at ``at_cycle``.

    ``runtime_states`` maps instruction ids to their state as it stood at the
    start of the cycle. A producer only blocks decode once it was fetched in an
    earlier cycle and has not yet written back.
    """
    for dep_id in instruction.depends_on:
        state = runtime_states.get(dep_id)
        if state is None:
            continue
        if not state.is_retired and state.fetched_at is not None and state.fetched_at < at_cycle:
            return True
    return False
