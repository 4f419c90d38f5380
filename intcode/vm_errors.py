from __future__ import annotations

from typing import Sequence


class IntcodeError(RuntimeError):
    """Base error raised by the Intcode VM, tagged with the failing program counter."""

    def __init__(self, message: str, *, pc: int | None = None):
        super().__init__(message)
        self.pc = pc

    def __str__(self) -> str:
        message = super().__str__()
        if self.pc is None:
            return message
        return f"{message} (pc={self.pc})"


class InvalidProgramText(IntcodeError, ValueError):
    def __init__(self, token: str, index: int):
        super().__init__(f"invalid program token {token!r} at index {index}")
        self.token = token
        self.index = index


class UnknownOpcode(IntcodeError):
    def __init__(self, opcode: int, word: int, *, pc: int | None = None):
        super().__init__(f"unknown opcode {opcode} in instruction word {word}", pc=pc)
        self.opcode = opcode
        self.word = word


class MemoryOutOfBounds(IntcodeError, IndexError):
    def __init__(self, address: int, size: int, *, pc: int | None = None):
        super().__init__(f"address {address} outside memory of size {size}", pc=pc)
        self.address = address
        self.size = size


class EmptyOutputRead(IntcodeError):
    def __init__(self):
        super().__init__("output buffer is empty")


class InputExhausted(IntcodeError):
    """Raised by drivers when a VM blocks on input that will never arrive."""

    def __init__(self, message: str, outputs: Sequence[int] = (), *, pc: int | None = None):
        super().__init__(message, pc=pc)
        self.outputs = list(outputs)


__all__ = [
    "IntcodeError",
    "InvalidProgramText",
    "UnknownOpcode",
    "MemoryOutOfBounds",
    "EmptyOutputRead",
    "InputExhausted",
]
