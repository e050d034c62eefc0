from enum import Enum

from .instructions import Direction


class PredictorType(Enum):
    ONE_BIT = "one-bit"
    TWO_BIT = "two-bit"


class PredictionState(Enum):
    STRONGLY_NOT_TAKEN = 0
    WEAKLY_NOT_TAKEN = 1
    WEAKLY_TAKEN = 2
    STRONGLY_TAKEN = 3


STATE_NAMES = {
    PredictionState.STRONGLY_NOT_TAKEN: "Strong NT",
    PredictionState.WEAKLY_NOT_TAKEN: "Weak NT",
    PredictionState.WEAKLY_TAKEN: "Weak T",
    PredictionState.STRONGLY_TAKEN: "Strong T",
}


class BranchPredictor:
    """Branch direction predictor, advanced only when a branch resolves"""

    predictor_type: PredictorType

    def predict(self) -> Direction:
        """Current guess for the next branch; does not change the state"""
        raise NotImplementedError

    def update(self, actual: Direction):
        """Trains the predictor with a resolved outcome"""
        raise NotImplementedError

    def reset(self):
        """Back to the initial state of a new run"""
        raise NotImplementedError

    @property
    def state_label(self) -> str:
        """Human-readable state, as shown next to the pipeline diagram"""
        raise NotImplementedError


class OneBitPredictor(BranchPredictor):
    """Remembers the last outcome; a single wrong guess flips it"""

    predictor_type = PredictorType.ONE_BIT

    def __init__(self):
        self.state = Direction.NOT_TAKEN

    def predict(self) -> Direction:
        return self.state

    def update(self, actual: Direction):
        self.state = actual

    def reset(self):
        self.state = Direction.NOT_TAKEN

    @property
    def state_label(self) -> str:
        return self.state.value


class TwoBitPredictor(BranchPredictor):
    """Saturating 2-bit counter, predicts taken in the upper half"""

    predictor_type = PredictorType.TWO_BIT

    def __init__(self):
        self.state = PredictionState.STRONGLY_NOT_TAKEN

    @property
    def counter(self) -> int:
        """Counter value 0..3"""
        return self.state.value

    def predict(self) -> Direction:
        if self.state in [PredictionState.WEAKLY_TAKEN, PredictionState.STRONGLY_TAKEN]:
            return Direction.TAKEN
        return Direction.NOT_TAKEN

    def update(self, actual: Direction):
        self.state = self._update_prediction_state(self.state, actual == Direction.TAKEN)

    def reset(self):
        self.state = PredictionState.STRONGLY_NOT_TAKEN

    @property
    def state_label(self) -> str:
        return f"{self.counter:02b} ({STATE_NAMES[self.state]})"

    @staticmethod
    def _update_prediction_state(current_state: PredictionState, taken: bool) -> PredictionState:
        """Next counter state after a branch outcome"""
        # Saturates at both ends
        if taken:
            return PredictionState(min(current_state.value + 1, PredictionState.STRONGLY_TAKEN.value))
        return PredictionState(max(current_state.value - 1, PredictionState.STRONGLY_NOT_TAKEN.value))


def parse_predictor_type(value) -> PredictorType:
    """Accepts a PredictorType or its name (one-bit / two-bit)"""
    if isinstance(value, PredictorType):
        return value
    token = str(value).strip().lower().replace("_", "-")
    for predictor_type in PredictorType:
        if predictor_type.value == token:
            return predictor_type
    raise ValueError(f"Unknown predictor type: {value!r} "
                     f"(expected one of {[t.value for t in PredictorType]})")


def create_predictor(predictor_type) -> BranchPredictor:
    """Returns a freshly initialised predictor of the requested type"""
    predictor_type = parse_predictor_type(predictor_type)
    if predictor_type == PredictorType.TWO_BIT:
        return TwoBitPredictor()
    return OneBitPredictor()
