from __future__ import annotations

from itertools import permutations
from typing import Iterable, List, Optional, Sequence, Tuple

from .machine import IntcodeVM
from .vm_errors import InputExhausted
from .vm_events import ExecutionState


def run_program(program: str, inputs: Iterable[int] = ()) -> List[int]:
    """Run ``program`` to completion on ``inputs`` and return everything it printed."""
    vm = IntcodeVM(program)
    vm.input_many(inputs)
    state = vm.run()
    outputs = vm.output_all()
    if state is ExecutionState.BLOCKED_ON_INPUT:
        raise InputExhausted("program is waiting for more input", outputs, pc=vm.pc)
    return outputs


def build_chain(program: str, phases: Sequence[int]) -> List[IntcodeVM]:
    machines = []
    for phase in phases:
        vm = IntcodeVM(program)
        vm.input(phase)
        machines.append(vm)
    return machines


def pump(machines: Sequence[IntcodeVM], feedback: bool) -> Tuple[bool, Optional[int]]:
    """Run every live machine once, forwarding its output to the next one.

    Returns whether anything moved during the round, plus the last value the
    final machine emitted in it (``None`` if it emitted nothing).
    """
    progressed = False
    last_value: Optional[int] = None
    count = len(machines)
    for index, vm in enumerate(machines):
        if vm.state is ExecutionState.HALTED:
            continue
        before = (vm.pc, vm.pending_input)
        state = vm.run()
        outputs = vm.output_all()
        if outputs or state is ExecutionState.HALTED or (vm.pc, vm.pending_input) != before:
            progressed = True
        if index == count - 1:
            if outputs:
                last_value = outputs[-1]
            if not feedback:
                continue
        target = machines[(index + 1) % count]
        target.input_many(outputs)
    return progressed, last_value


def run_chain(program: str, phases: Sequence[int], initial: int = 0, feedback: bool = False) -> int:
    """Thread a signal through one VM per phase setting.

    Without ``feedback`` each machine runs once in order. With it, the last
    machine's output is looped back into the first until the last machine
    halts.
    """
    if not phases:
        raise ValueError("at least one phase setting is required")
    machines = build_chain(program, phases)
    machines[0].input(initial)
    signal: Optional[int] = None
    while True:
        progressed, value = pump(machines, feedback)
        if value is not None:
            signal = value
        last = machines[-1]
        if not feedback or last.state is ExecutionState.HALTED:
            break
        if not progressed:
            raise InputExhausted(
                f"chain stalled with machine {len(machines) - 1} in state {last.state.name}",
                [] if signal is None else [signal],
                pc=last.pc,
            )
    if signal is None:
        raise InputExhausted("chain finished without producing a signal")
    return signal


def best_phase_setting(
    program: str,
    phase_values: Iterable[int],
    initial: int = 0,
    feedback: bool = False,
) -> Tuple[int, Tuple[int, ...]]:
    best: Optional[Tuple[int, Tuple[int, ...]]] = None
    for phases in permutations(list(phase_values)):
        signal = run_chain(program, phases, initial=initial, feedback=feedback)
        if best is None or signal > best[0]:
            best = (signal, phases)
    if best is None:
        raise ValueError("no phase values given")
    return best


__all__ = ["run_program", "build_chain", "pump", "run_chain", "best_phase_setting"]
