from __future__ import annotations

import curses
from typing import List, Optional, Tuple

from .disassembler import DisassembledLine, disassemble
from .event_format import format_event
from .machine import IntcodeVM
from .vm_errors import IntcodeError
from .vm_events import ExecutionState

_EVENT_LOG_LIMIT = 200


class StepSession:
    """Interactive stepping state shared by the curses and pygame front ends."""

    def __init__(self, vm: IntcodeVM, max_steps: Optional[int] = None):
        self.vm = vm
        self.vm.record_events = True
        self.max_steps = max_steps
        self.steps = 0
        self.auto_run = False
        self.error: Optional[str] = None
        self.event_log: List[str] = []
        self.message = "Press SPACE to run/pause, n to step, q to quit."

    @property
    def halted(self) -> bool:
        return self.vm.state is ExecutionState.HALTED

    @property
    def blocked(self) -> bool:
        return self.vm.state is ExecutionState.BLOCKED_ON_INPUT

    @property
    def stopped(self) -> bool:
        return self.halted or self.error is not None

    def advance(self, auto: bool = False) -> None:
        if self.stopped:
            self.auto_run = False
            self.message = "Program halted. Press r to reset or q to quit."
            return
        if self.max_steps is not None and self.steps >= self.max_steps:
            self.auto_run = False
            self.message = "Reached max steps; press r to reset or q to quit."
            return
        try:
            state = self.vm.step()
        except IntcodeError as exc:
            self.error = str(exc)
            self.auto_run = False
            self.message = f"Error: {exc}"
            self.consume_events()
            return
        self.consume_events()
        if state is ExecutionState.BLOCKED_ON_INPUT:
            self.auto_run = False
            self.message = "Waiting for input. Press i to enter a value."
            return
        self.steps += 1
        if state is ExecutionState.HALTED:
            self.auto_run = False
            self.message = "Halted. Press r to reset or q to quit."
        elif auto:
            self.message = "Running..."

    def provide_input(self, text: str) -> bool:
        try:
            value = int(text.strip(), 10)
        except ValueError:
            self.message = f"Not an integer: {text!r}"
            return False
        self.vm.input(value)
        self.message = f"Queued input {value}."
        return True

    def toggle_auto(self) -> None:
        if self.stopped:
            self.message = "Program halted. Press r to reset or q to quit."
            return
        self.auto_run = not self.auto_run
        self.message = "Running..." if self.auto_run else "Paused."

    def reset(self) -> None:
        self.vm.reboot()
        self.vm.drain_events()
        self.steps = 0
        self.auto_run = False
        self.error = None
        self.event_log.clear()
        self.message = "Reset. Press SPACE to run or n to step."

    def consume_events(self) -> None:
        for event in self.vm.drain_events():
            self.event_log.append(format_event(event))
        if len(self.event_log) > _EVENT_LOG_LIMIT:
            self.event_log = self.event_log[-_EVENT_LOG_LIMIT:]

    def listing_window(self, height: int) -> Tuple[List[DisassembledLine], int]:
        """Listing lines around the program counter and the index of the PC line.

        The listing is a linear sweep from address 0, so when execution
        jumps into the middle of an instruction the sweep is restarted at
        the PC to keep the current instruction visible. The returned index
        is -1 if the PC is outside memory.
        """
        pc = self.vm.pc
        lines = disassemble(self.vm.memory)
        if not 0 <= pc < len(self.vm):
            return lines[:height], -1
        cursor = next((i for i, line in enumerate(lines) if line.address == pc), None)
        if cursor is None:
            lines = disassemble(self.vm.memory, start=pc)
            cursor = 0
        start = max(0, cursor - height // 2)
        return lines[start : start + height], cursor - start

    def status_line(self) -> str:
        return (
            f"Step: {self.steps} | PC: {self.vm.pc} | State: {self.vm.state.name} "
            f"| Auto: {self.auto_run} | Input queued: {self.vm.pending_input}"
        )


class VMVisualizer:
    """Curses-based stepper for IntcodeVM.

    Controls:
      - SPACE / p : toggle auto-run
      - n / →     : single-step
      - i         : type an input value
      - r         : reboot the VM
      - e         : toggle event log visibility
      - q         : quit
    """

    def __init__(self, vm: IntcodeVM, max_steps: Optional[int] = None):
        self.session = StepSession(vm, max_steps=max_steps)
        self.show_events = True

    def run(self) -> None:  # pragma: no cover - interactive utility
        curses.wrapper(self._main)

    def _main(self, stdscr: "curses._CursesWindow") -> None:  # pragma: no cover - interactive utility
        curses.curs_set(0)
        session = self.session
        while True:
            self._draw(stdscr)
            stdscr.timeout(120 if session.auto_run else -1)
            key = stdscr.getch()
            if key == -1:
                if session.auto_run:
                    session.advance(auto=True)
                continue
            if key in (ord("q"), ord("Q")):
                break
            if key in (ord(" "), ord("p"), ord("P")):
                session.toggle_auto()
            elif key in (ord("n"), curses.KEY_RIGHT):
                session.advance()
            elif key in (ord("i"), ord("I")):
                session.provide_input(self._prompt(stdscr, "Input value: "))
            elif key in (ord("r"), ord("R")):
                session.reset()
            elif key in (ord("e"), ord("E")):
                self.show_events = not self.show_events
                session.message = "Events visible." if self.show_events else "Events hidden."
            else:
                session.message = f"Unhandled key: {key}."

    def _prompt(self, stdscr: "curses._CursesWindow", label: str) -> str:  # pragma: no cover - interactive utility
        height, _ = stdscr.getmaxyx()
        self._write(stdscr, height - 1, 0, label)
        curses.echo()
        curses.curs_set(1)
        stdscr.timeout(-1)
        try:
            raw = stdscr.getstr(height - 1, len(label), 20)
        finally:
            curses.noecho()
            curses.curs_set(0)
        return raw.decode("utf-8", errors="ignore")

    def _draw(self, stdscr: "curses._CursesWindow") -> None:  # pragma: no cover - interactive utility
        session = self.session
        stdscr.erase()
        height, width = stdscr.getmaxyx()
        self._write(stdscr, 0, 0, "Intcode (SPACE: run/pause, n: step, i: input, r: reboot, q: quit)")

        view_height = min(14, max(1, height - 12))
        lines, cursor = session.listing_window(view_height)
        row = 2
        for index, line in enumerate(lines):
            is_cursor = index == cursor
            prefix = "→" if is_cursor else " "
            attr = curses.A_REVERSE if is_cursor else curses.A_NORMAL
            self._write(stdscr, row, 0, f"{prefix}{line}", attr)
            row += 1

        row += 1
        self._write(stdscr, row, 0, session.status_line())
        row += 2
        self._write(stdscr, row, 0, "Output:")
        output_repr = ", ".join(str(value) for value in session.vm.peek_output())
        self._write(stdscr, row + 1, 2, output_repr or "<empty>")

        row += 3
        if self.show_events:
            self._write(stdscr, row, 0, "Events:")
            for i, text in enumerate(reversed(session.event_log[-6:])):
                self._write(stdscr, row + 1 + i, 2, text)
        else:
            self._write(stdscr, row, 0, "Events: <hidden>")

        self._write(stdscr, height - 2, 0, session.message[: width - 1])
        stdscr.refresh()

    def _write(self, stdscr: "curses._CursesWindow", y: int, x: int, text: str, attr: int = curses.A_NORMAL) -> None:  # pragma: no cover - interactive utility
        height, width = stdscr.getmaxyx()
        if 0 <= y < height:
            try:
                stdscr.addnstr(y, x, text, max(0, width - x - 1), attr)
            except curses.error:
                pass


__all__ = ["StepSession", "VMVisualizer"]
