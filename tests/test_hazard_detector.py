from pipeline_sim.hazard_detector import has_data_hazard
from pipeline_sim.instructions import Instruction
from pipeline_sim.stage_status import InstructionRuntimeState, Stage


def make_state(**stages):
    state = InstructionRuntimeState()
    for stage in (Stage.FETCH, Stage.DECODE, Stage.EXECUTE, Stage.MEMORY, Stage.WRITEBACK):
        if stage.name.lower() in stages:
            state.complete(stage, stages[stage.name.lower()])
    return state


CONSUMER = Instruction(2, depends_on=frozenset({1}))


def test_no_dependencies_never_hazard():
    assert not has_data_hazard(Instruction(2), 5, {1: make_state(fetch=1)})


def test_in_flight_producer_blocks():
    assert has_data_hazard(CONSUMER, 3, {1: make_state(fetch=1, decode=2)})


def test_retired_producer_does_not_block():
    state = make_state(fetch=1, decode=2, execute=3, memory=4, writeback=5)
    assert not has_data_hazard(CONSUMER, 6, {1: state})


def test_unfetched_producer_does_not_block():
    assert not has_data_hazard(CONSUMER, 3, {})
    assert not has_data_hazard(CONSUMER, 3, {1: None})


def test_producer_fetched_same_cycle_does_not_block():
    assert not has_data_hazard(CONSUMER, 4, {1: make_state(fetch=4)})


def test_any_in_flight_producer_blocks():
    consumer = Instruction(3, depends_on=frozenset({1, 2}))
    retired = make_state(fetch=1, decode=2, execute=3, memory=4, writeback=5)
    states = {1: retired, 2: make_state(fetch=2, decode=3)}
    assert has_data_hazard(consumer, 6, states)
