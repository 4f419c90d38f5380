from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .opcodes import DecodedInstruction, ParameterMode, decode_word
from .vm_errors import MemoryOutOfBounds, UnknownOpcode


@dataclass(frozen=True)
class DisassembledLine:
    address: int
    words: Tuple[int, ...]
    mnemonic: str
    operands: Tuple[str, ...] = ()

    def __str__(self):
        raw = ",".join(str(word) for word in self.words)
        text = f"{self.mnemonic} {', '.join(self.operands)}".rstrip()
        return f"{self.address:>5}  {raw:<24} {text}"


def format_operand(raw: int, mode: ParameterMode) -> str:
    if mode is ParameterMode.IMMEDIATE:
        return f"#{raw}"
    return f"[{raw}]"


def operand_modes(inst: DecodedInstruction) -> Tuple[ParameterMode, ...]:
    """Effective modes, with a write destination always read as an address."""
    modes = list(inst.modes)
    if inst.spec.writes and modes:
        modes[-1] = ParameterMode.POSITION
    return tuple(modes)


def format_instruction(inst: DecodedInstruction, params: Sequence[int]) -> str:
    operands = [format_operand(raw, mode) for raw, mode in zip(params, operand_modes(inst))]
    return f"{inst.spec.mnemonic} {', '.join(operands)}".rstrip()


def disassemble(memory: Sequence[int], start: int = 0) -> List[DisassembledLine]:
    """Linear sweep listing of ``memory`` from ``start``.

    Words that do not decode, or instructions that would run past the end of
    memory, are listed as single ``DATA`` words so the sweep always advances.
    """
    size = len(memory)
    if not 0 <= start < size:
        raise MemoryOutOfBounds(start, size)
    lines: List[DisassembledLine] = []
    address = start
    while address < size:
        word = memory[address]
        try:
            inst = decode_word(word, address)
        except UnknownOpcode:
            inst = None
        if inst is None or address + inst.spec.width > size:
            lines.append(DisassembledLine(address, (word,), "DATA", (str(word),)))
            address += 1
            continue
        params = tuple(memory[address + 1 : address + inst.spec.width])
        operands = tuple(format_operand(raw, mode) for raw, mode in zip(params, operand_modes(inst)))
        lines.append(DisassembledLine(address, (word,) + params, inst.spec.mnemonic, operands))
        address += inst.spec.width
    return lines


def format_listing(lines: Sequence[DisassembledLine]) -> str:
    return "\n".join(str(line) for line in lines)


__all__ = [
    "DisassembledLine",
    "format_operand",
    "format_instruction",
    "operand_modes",
    "disassemble",
    "format_listing",
]
