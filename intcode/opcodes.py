from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Mapping, Tuple

from .vm_errors import UnknownOpcode


class Opcode(IntEnum):
    ADD = 1              # ADD a, b, dst      -> mem[dst] = a + b
    MUL = 2              # MUL a, b, dst      -> mem[dst] = a * b
    INPUT = 3            # INPUT dst          -> mem[dst] = dequeue(input)
    OUTPUT = 4           # OUTPUT a           -> enqueue(output, a)
    JUMP_IF_TRUE = 5     # JUMP_IF_TRUE a, b  -> pc = b if a != 0
    JUMP_IF_FALSE = 6    # JUMP_IF_FALSE a, b -> pc = b if a == 0
    LESS_THAN = 7        # LESS_THAN a, b, dst
    EQUALS = 8           # EQUALS a, b, dst
    HALT = 99


class ParameterMode(Enum):
    POSITION = 0
    IMMEDIATE = 1


@dataclass(frozen=True)
class OpSpec:
    """Static metadata for one opcode.

    ``size`` is the amount the program counter advances after the handler
    runs. Control transfer opcodes declare 0 and move the counter themselves,
    so ``params`` (not ``size``) is what tells how many words follow the
    instruction word.
    """

    opcode: Opcode
    mnemonic: str
    size: int
    params: int
    writes: bool = False

    @property
    def width(self) -> int:
        return self.params + 1


@dataclass(frozen=True)
class DecodedInstruction:
    address: int
    word: int
    spec: OpSpec
    modes: Tuple[ParameterMode, ...]

    @property
    def opcode(self) -> Opcode:
        return self.spec.opcode

    @property
    def flags(self) -> int:
        return self.word // 100

    def __str__(self):
        modes = " ".join(mode.name[0] for mode in self.modes)
        return f"{self.spec.mnemonic} ({modes})" if modes else self.spec.mnemonic


_SPECS = (
    OpSpec(Opcode.ADD, "ADD", 4, 3, writes=True),
    OpSpec(Opcode.MUL, "MUL", 4, 3, writes=True),
    OpSpec(Opcode.INPUT, "IN", 2, 1, writes=True),
    OpSpec(Opcode.OUTPUT, "OUT", 2, 1),
    OpSpec(Opcode.JUMP_IF_TRUE, "JNZ", 0, 2),
    OpSpec(Opcode.JUMP_IF_FALSE, "JZ", 0, 2),
    OpSpec(Opcode.LESS_THAN, "LT", 4, 3, writes=True),
    OpSpec(Opcode.EQUALS, "EQ", 4, 3, writes=True),
    OpSpec(Opcode.HALT, "HALT", 1, 0),
)

# Shared by every VM instance; never mutated after import.
OPCODE_TABLE: Mapping[int, OpSpec] = MappingProxyType({spec.opcode.value: spec for spec in _SPECS})


def flag_at(flags: int, position: int) -> int:
    return (flags // 10 ** position) % 10


def parameter_mode(flags: int, position: int) -> ParameterMode:
    # Any digit other than 1 reads as position mode.
    if flag_at(flags, position) == ParameterMode.IMMEDIATE.value:
        return ParameterMode.IMMEDIATE
    return ParameterMode.POSITION


def lookup(code: int, *, word: int | None = None, pc: int | None = None) -> OpSpec:
    spec = OPCODE_TABLE.get(code)
    if spec is None:
        raise UnknownOpcode(code, word if word is not None else code, pc=pc)
    return spec


def decode_word(word: int, address: int = 0) -> DecodedInstruction:
    """Split an instruction word into its opcode spec and parameter modes."""
    if word < 0:
        # floor modulo would map e.g. -1 onto HALT
        raise UnknownOpcode(word, word, pc=address)
    code = word % 100
    flags = word // 100
    spec = lookup(code, word=word, pc=address)
    modes = tuple(parameter_mode(flags, pos) for pos in range(spec.params))
    return DecodedInstruction(address=address, word=word, spec=spec, modes=modes)


__all__ = [
    "Opcode",
    "ParameterMode",
    "OpSpec",
    "DecodedInstruction",
    "OPCODE_TABLE",
    "flag_at",
    "parameter_mode",
    "lookup",
    "decode_word",
]
