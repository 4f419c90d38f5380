from __future__ import annotations

import pathlib
from typing import Iterable, List

from .vm_errors import InvalidProgramText


def parse_program(text: str) -> List[int]:
    """Parse comma separated decimal integers into a memory image.

    Surrounding whitespace (a trailing newline in particular) is ignored,
    both around the whole text and around each token. Empty tokens are
    rejected, so ``"1,,2"`` and ``""`` both fail.
    """
    stripped = text.strip()
    if not stripped:
        raise InvalidProgramText(text, 0)
    memory: List[int] = []
    for index, raw in enumerate(stripped.split(",")):
        token = raw.strip()
        try:
            value = int(token, 10)
        except ValueError:
            raise InvalidProgramText(raw, index) from None
        # int() accepts digit group underscores; program text does not
        if "_" in token:
            raise InvalidProgramText(raw, index)
        memory.append(value)
    return memory


def format_program(memory: Iterable[int]) -> str:
    return ",".join(str(value) for value in memory)


def load_program(path) -> str:
    return pathlib.Path(path).read_text(encoding="utf-8")


def save_program(memory: Iterable[int], path) -> None:
    pathlib.Path(path).write_text(format_program(memory) + "\n", encoding="utf-8")


__all__ = ["parse_program", "format_program", "load_program", "save_program"]
