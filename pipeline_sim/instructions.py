from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, Optional, Tuple


class ProgramError(ValueError):
    """Malformed program description"""


class InstructionType(Enum):
    ARITHMETIC = "arithmetic"
    BRANCH = "branch"


class Direction(Enum):
    TAKEN = "T"
    NOT_TAKEN = "NT"

    @classmethod
    def parse(cls, value) -> "Direction":
        """Accepts T/NT as in the authoring format, or spelled out"""
        if isinstance(value, Direction):
            return value
        token = str(value).strip().lower().replace("_", "-").replace(" ", "-")
        if token in ("t", "taken"):
            return cls.TAKEN
        if token in ("nt", "not-taken", "nottaken"):
            return cls.NOT_TAKEN
        raise ProgramError(f"Unknown branch outcome: {value!r}")


@dataclass(frozen=True)
class Instruction:
    id: int
    type: InstructionType = InstructionType.ARITHMETIC
    depends_on: FrozenSet[int] = field(default_factory=frozenset)
    actual: Optional[Direction] = None
    text: str = ""
    comment: str = ""

    @property
    def is_branch(self) -> bool:
        return self.type == InstructionType.BRANCH

    def __str__(self):
        return self.text or f"I{self.id}"


def _parse_id(value, what: str) -> int:
    # bool is an int subclass; floats would be truncated silently
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProgramError(f"{what} must be an integer, got {value!r}")
    return value


class InstructionFactory:
    """Builds instructions from the dict authoring format (``dependsOn``, ``actual``)"""

    @staticmethod
    def create_instruction(description: Dict) -> Instruction:
        """Creates one instruction, rejecting fields of the wrong JSON type"""
        if not isinstance(description, dict):
            raise ProgramError(f"Instruction description must be an object, got {description!r}")
        if "id" not in description:
            raise ProgramError(f"Instruction without id: {description!r}")

        inst_id = _parse_id(description["id"], "Instruction id")
        dependencies = description.get("dependsOn")
        if dependencies is None:
            dependencies = []
        if not isinstance(dependencies, (list, tuple)):
            raise ProgramError(f"dependsOn of instruction {inst_id} must be a list, got {dependencies!r}")
        depends_on = frozenset(_parse_id(dep, f"Dependency of instruction {inst_id}") for dep in dependencies)

        # Anything that is not a branch goes down the pipeline like an ALU op
        kind = str(description.get("type", "")).strip().lower()
        inst_type = InstructionType.BRANCH if kind == "branch" else InstructionType.ARITHMETIC

        actual = description.get("actual")
        return Instruction(
            id=inst_id,
            type=inst_type,
            depends_on=depends_on,
            actual=Direction.parse(actual) if actual is not None else None,
            text=str(description.get("text", "")),
            comment=str(description.get("comment", "")),
        )


class Program:
    """Ordered, immutable instruction sequence, validated on construction"""

    def __init__(self, instructions: Iterable[Instruction]):
        self.instructions: Tuple[Instruction, ...] = tuple(instructions)
        known_ids = set()

        for instruction in self.instructions:
            _parse_id(instruction.id, "Instruction id")
            if instruction.id <= 0:
                raise ProgramError(f"Instruction ids must be positive, got {instruction.id}")
            if instruction.id in known_ids:
                raise ProgramError(f"Duplicate instruction id {instruction.id}")
            known_ids.add(instruction.id)

        for instruction in self.instructions:
            if instruction.id in instruction.depends_on:
                raise ProgramError(f"Instruction {instruction.id} depends on itself")
            missing = sorted(dep for dep in instruction.depends_on if dep not in known_ids)
            if missing:
                raise ProgramError(f"Instruction {instruction.id} depends on unknown ids {missing}")
            if instruction.is_branch and instruction.actual is None:
                raise ProgramError(f"Branch {instruction.id} has no actual outcome")

    @classmethod
    def from_dicts(cls, descriptions: Iterable[Dict]) -> "Program":
        """Builds a program from a list of instruction objects"""
        return cls(InstructionFactory.create_instruction(d) for d in descriptions)

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self.instructions[index]
