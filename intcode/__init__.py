"""Resumable Intcode virtual machine."""
from .machine import IntcodeVM
from .network import best_phase_setting, run_chain, run_program
from .opcodes import OPCODE_TABLE, Opcode, ParameterMode, decode_word
from .program_io import format_program, load_program, parse_program
from .vm_errors import (
    EmptyOutputRead,
    InputExhausted,
    IntcodeError,
    InvalidProgramText,
    MemoryOutOfBounds,
    UnknownOpcode,
)
from .vm_events import ExecutionState

__all__ = [
    "IntcodeVM",
    "ExecutionState",
    "Opcode",
    "ParameterMode",
    "OPCODE_TABLE",
    "decode_word",
    "parse_program",
    "format_program",
    "load_program",
    "run_program",
    "run_chain",
    "best_phase_setting",
    "IntcodeError",
    "InvalidProgramText",
    "UnknownOpcode",
    "MemoryOutOfBounds",
    "EmptyOutputRead",
    "InputExhausted",
]

__version__ = "0.1.0"
