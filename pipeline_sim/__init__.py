from .branch_predictor import OneBitPredictor, PredictorType, TwoBitPredictor, create_predictor
from .hazard_detector import has_data_hazard
from .instructions import Direction, Instruction, InstructionType, Program, ProgramError
from .processor import MISPREDICTION_PENALTY, PipelineProcessor
from .stage_status import PipelineStateError, Stage, StallCause
from .statistics import PipelineStats
