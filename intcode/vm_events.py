from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence, Tuple


class ExecutionState(Enum):
    INITIALIZED = "initialized"
    RUNNING = "running"
    BLOCKED_ON_INPUT = "blocked_on_input"
    HALTED = "halted"


@dataclass(frozen=True)
class InstructionExecuted:
    """One completed decode/execute cycle."""

    pc: int
    word: int
    mnemonic: str
    operands: Tuple[int, ...]
    next_pc: int
    write: Tuple[int, int] | None = None


@dataclass(frozen=True)
class InputRequested:
    pc: int


@dataclass(frozen=True)
class OutputProduced:
    pc: int
    value: int


@dataclass(frozen=True)
class MachineHalted:
    pc: int


@dataclass(frozen=True)
class MachineRebooted:
    size: int


VMEvent = InstructionExecuted | InputRequested | OutputProduced | MachineHalted | MachineRebooted


@dataclass(frozen=True)
class VMStateSnapshot:
    pc: int
    state: ExecutionState
    memory: Tuple[int, ...]
    pending_input: Tuple[int, ...] = field(default_factory=tuple)
    pending_output: Tuple[int, ...] = field(default_factory=tuple)

    @property
    def size(self) -> int:
        return len(self.memory)


__all__ = [
    "ExecutionState",
    "InstructionExecuted",
    "InputRequested",
    "OutputProduced",
    "MachineHalted",
    "MachineRebooted",
    "VMEvent",
    "VMStateSnapshot",
]
