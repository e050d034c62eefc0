import pytest

from pipeline_sim.branch_predictor import (OneBitPredictor, PredictionState, PredictorType,
                                           TwoBitPredictor, create_predictor)
from pipeline_sim.instructions import Direction

T = Direction.TAKEN
NT = Direction.NOT_TAKEN


def test_one_bit_starts_not_taken_and_follows_last_outcome():
    predictor = OneBitPredictor()
    assert predictor.predict() == NT
    assert predictor.state_label == "NT"

    predictor.update(T)
    assert predictor.predict() == T
    assert predictor.state_label == "T"

    predictor.update(NT)
    assert predictor.predict() == NT


def test_predict_does_not_change_state():
    predictor = TwoBitPredictor()
    predictor.update(T)
    for _ in range(3):
        predictor.predict()
    assert predictor.counter == 1


def test_two_bit_four_taken_from_strong_not_taken():
    predictor = TwoBitPredictor()
    predictions = []
    counters = []
    for _ in range(4):
        predictions.append(predictor.predict())
        predictor.update(T)
        counters.append(predictor.counter)

    assert counters == [1, 2, 3, 3]
    assert predictions == [NT, NT, T, T]


def test_two_bit_saturates_at_zero():
    predictor = TwoBitPredictor()
    predictor.update(NT)
    predictor.update(NT)
    assert predictor.state == PredictionState.STRONGLY_NOT_TAKEN


def test_two_bit_counter_stays_in_range():
    predictor = TwoBitPredictor()
    outcomes = [T, T, T, T, T, NT, T, NT, NT, NT, NT, NT, T]
    for outcome in outcomes:
        predictor.update(outcome)
        assert 0 <= predictor.counter <= 3


def test_two_bit_needs_two_misses_to_flip():
    predictor = TwoBitPredictor()
    for _ in range(3):
        predictor.update(T)
    predictor.update(NT)
    assert predictor.predict() == T
    predictor.update(NT)
    assert predictor.predict() == NT


@pytest.mark.parametrize("outcomes,label", [
    ([], "00 (Strong NT)"),
    ([T], "01 (Weak NT)"),
    ([T, T], "10 (Weak T)"),
    ([T, T, T], "11 (Strong T)"),
])
def test_two_bit_state_label(outcomes, label):
    predictor = TwoBitPredictor()
    for outcome in outcomes:
        predictor.update(outcome)
    assert predictor.state_label == label


def test_reset_restores_initial_state():
    one_bit = OneBitPredictor()
    one_bit.update(T)
    one_bit.reset()
    assert one_bit.predict() == NT

    two_bit = TwoBitPredictor()
    two_bit.update(T)
    two_bit.update(T)
    two_bit.reset()
    assert two_bit.counter == 0


def test_create_predictor_by_name():
    assert isinstance(create_predictor("one-bit"), OneBitPredictor)
    assert isinstance(create_predictor("two_bit"), TwoBitPredictor)
    assert isinstance(create_predictor(PredictorType.TWO_BIT), TwoBitPredictor)


def test_create_predictor_rejects_unknown_type():
    with pytest.raises(ValueError, match="three-bit"):
        create_predictor("three-bit")
