import argparse
import logging
import sys
from typing import List, Optional

from .branch_predictor import PredictorType
from .instructions import ProgramError
from .processor import PipelineProcessor
from .programs import demo_program, load_program_file

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Command-line options"""
    parser = argparse.ArgumentParser(
        prog="pipeline-sim",
        description="Simulate a 5-stage pipeline with branch prediction until the program drains.",
    )
    parser.add_argument("--predictor", choices=[t.value for t in PredictorType], default="one-bit",
                        help="Branch predictor (default: one-bit)")
    parser.add_argument("--program", help="JSON program file (default: built-in loop demo)")
    parser.add_argument("--max-cycles", type=int, default=500,
                        help="Give up after this many cycles (default: 500)")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Log pipeline events (-v: flushes, -vv: every cycle)")
    return parser.parse_args(argv)


def format_instruction(row: dict) -> str:
    """One line per instruction: completed stages, then stalls"""
    stages = " ".join(f"{stage}{cycle}" for stage, cycle in row["stages"].items())
    stalls = " ".join(f"{code}@{cycle}" for cycle, code in row["stalls"].items())
    line = f"{row['id']:>3}  {row['text'] or '-':<24} {stages}"
    if stalls:
        line += f"  [{stalls}]"
    return line


def format_accuracy(stats: dict) -> str:
    """Percentage with one decimal, plain 0% before any branch resolves"""
    if stats["correct"] + stats["incorrect"] == 0:
        return "0%"
    return f"{stats['accuracy'] * 100:.1f}%"


def format_summary(snapshot: dict) -> List[str]:
    """Statistics block of the simulator panel"""
    stats = snapshot["stats"]
    return [
        f"Current Cycle: {snapshot['cycle']}",
        f"Predictor: {snapshot['predictor']['type']} state {snapshot['predictor']['state']}",
        f"Branch Predictions: {stats['correct']} correct, {stats['incorrect']} incorrect",
        f"Stalls: {stats['data_stalls']} data hazard, {stats['branch_stalls']} branch misprediction",
        f"Total Stall Cycles: {stats['total_stalls']}",
        f"Prediction Accuracy: {format_accuracy(stats)}",
    ]


def main(argv: Optional[List[str]] = None) -> int:
    """Runs the simulation to completion and prints the result; returns the exit status"""
    args = parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        program = load_program_file(args.program) if args.program else demo_program()
    except (OSError, ProgramError) as e:
        print(f"pipeline-sim: error: {e}", file=sys.stderr)
        return 2

    processor = PipelineProcessor(program, predictor_type=args.predictor)
    completed = processor.run(args.max_cycles)

    snapshot = processor.get_snapshot()
    for row in snapshot["instructions"]:
        print(format_instruction(row))
    print()
    for line in format_summary(snapshot):
        print(line)

    if not completed:
        logger.warning("Stopped at the %d-cycle ceiling before the program drained", args.max_cycles)
        return 1
    return 0
