from __future__ import annotations

from .vm_events import (
    InputRequested,
    InstructionExecuted,
    MachineHalted,
    MachineRebooted,
    OutputProduced,
)


def format_event(event: object) -> str:
    if isinstance(event, InstructionExecuted):
        operands = ",".join(str(value) for value in event.operands)
        text = f"[{event.pc}] {event.mnemonic} {operands}".rstrip()
        if event.write is not None:
            address, value = event.write
            text += f" ; [{address}] <- {value}"
        return f"{text} -> pc={event.next_pc}"
    if isinstance(event, InputRequested):
        return f"[{event.pc}] waiting for input"
    if isinstance(event, OutputProduced):
        return f"[{event.pc}] output {event.value}"
    if isinstance(event, MachineHalted):
        return f"[{event.pc}] halted"
    if isinstance(event, MachineRebooted):
        return f"rebooted ({event.size} words)"
    return str(event)


__all__ = ["format_event"]
