from dataclasses import asdict, dataclass
from typing import Dict


@dataclass
class PipelineStats:
    """Running counters of one simulation run"""
    correct: int = 0
    incorrect: int = 0
    data_stalls: int = 0
    branch_stalls: int = 0

    def record_prediction(self, correct: bool):
        """Counts one resolved branch"""
        if correct:
            self.correct += 1
        else:
            self.incorrect += 1

    def record_data_stall(self):
        """Counts one decode stall on a data hazard"""
        self.data_stalls += 1

    def record_branch_stalls(self, cycles: int):
        """Counts the recovery cycles of a misprediction"""
        self.branch_stalls += cycles

    @property
    def resolved_branches(self) -> int:
        return self.correct + self.incorrect

    @property
    def total_stalls(self) -> int:
        return self.data_stalls + self.branch_stalls

    def get_accuracy(self) -> float:
        """Fraction of correctly predicted branches, 0.0 before any branch resolves"""
        if self.resolved_branches == 0:
            return 0.0
        return self.correct / self.resolved_branches

    def get_stats(self) -> Dict:
        """Counters plus total stalls and accuracy, as a plain dict"""
        return {
            **asdict(self),
            'total_stalls': self.total_stalls,
            'accuracy': self.get_accuracy(),
        }
