import json
from pathlib import Path
from typing import Dict, List, Union

from .instructions import Program, ProgramError

# Counted loop: four taken loop-back branches, then the exit
DEMO_PROGRAM: List[Dict] = [
    {"id": 1, "type": "add", "text": "add r1, r0, #5", "comment": "Initialize loop counter"},

    {"id": 2, "type": "add", "text": "LOOP: add r2, r2, r3", "comment": "Loop body"},
    {"id": 3, "type": "sub", "text": "sub r1, r1, #1", "comment": "Decrement counter"},
    {"id": 4, "type": "branch", "text": "bne r1, r0, LOOP", "actual": "T",
     "comment": "First branch: Taken", "dependsOn": [3]},

    {"id": 5, "type": "add", "text": "add r2, r2, r3", "comment": "Loop iteration 2"},
    {"id": 6, "type": "sub", "text": "sub r1, r1, #1", "comment": "Decrement counter"},
    {"id": 7, "type": "branch", "text": "bne r1, r0, LOOP", "actual": "T",
     "comment": "Second branch: Taken", "dependsOn": [6]},

    {"id": 8, "type": "add", "text": "add r2, r2, r3", "comment": "Loop iteration 3"},
    {"id": 9, "type": "sub", "text": "sub r1, r1, #1", "comment": "Decrement counter"},
    {"id": 10, "type": "branch", "text": "bne r1, r0, LOOP", "actual": "T",
     "comment": "Third branch: Taken", "dependsOn": [9]},

    {"id": 11, "type": "add", "text": "add r2, r2, r3", "comment": "Loop iteration 4"},
    {"id": 12, "type": "sub", "text": "sub r1, r1, #1", "comment": "Decrement counter"},
    {"id": 13, "type": "branch", "text": "bne r1, r0, LOOP", "actual": "T",
     "comment": "Fourth branch: Taken", "dependsOn": [12]},

    {"id": 14, "type": "add", "text": "add r2, r2, r3", "comment": "Final iteration"},
    {"id": 15, "type": "sub", "text": "sub r1, r1, #1", "comment": "Counter reaches zero"},
    {"id": 16, "type": "branch", "text": "bne r1, r0, LOOP", "actual": "NT",
     "comment": "Final branch: Not Taken", "dependsOn": [15]},

    {"id": 17, "type": "add", "text": "add r4, r2, r0", "comment": "Post-loop operation"},
]


def demo_program() -> Program:
    """The counted loop above as a fresh Program"""
    return Program.from_dicts(DEMO_PROGRAM)


def load_program_file(path: Union[str, Path]) -> Program:
    """Reads a JSON list of instruction objects in the same format as DEMO_PROGRAM"""
    path = Path(path)
    try:
        descriptions = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise ProgramError(f"{path}: not UTF-8 text ({e})") from e
    except json.JSONDecodeError as e:
        raise ProgramError(f"{path}: invalid JSON ({e})") from e

    if not isinstance(descriptions, list):
        raise ProgramError(f"{path}: expected a list of instructions")
    return Program.from_dicts(descriptions)
