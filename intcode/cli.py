from __future__ import annotations

import argparse
import sys
from typing import List, Optional, Sequence

from .disassembler import disassemble, format_listing
from .event_format import format_event
from .machine import IntcodeVM
from .network import best_phase_setting, run_chain
from .program_io import load_program, parse_program
from .vm_errors import IntcodeError
from .vm_events import ExecutionState


def _int_list(text: str) -> List[int]:
    try:
        return parse_program(text)
    except IntcodeError as exc:
        raise argparse.ArgumentTypeError(f"expected comma separated integers: {exc}") from exc


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("program", nargs="?", help="Path to a program text file")
    parser.add_argument("-e", "--execute", dest="inline", help="Use this program text instead of a file")


def _read_source(parser: argparse.ArgumentParser, args: argparse.Namespace) -> str:
    if args.inline and args.program:
        parser.error("cannot use program path and --execute together")
    if args.inline:
        return args.inline
    if args.program:
        return load_program(args.program)
    parser.error("missing program path or --execute")
    raise AssertionError("unreachable")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="intcode", description="Run Intcode programs")
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Run a program, printing each output value")
    _add_source_arguments(run)
    run.add_argument("-i", "--input", dest="inputs", type=int, action="append", default=[], help="Queue an input value (repeatable)")
    run.add_argument("--noun", type=int, help="Write this value to address 1 before running")
    run.add_argument("--verb", type=int, help="Write this value to address 2 before running")
    run.add_argument("--dump", action="store_true", help="Print the memory dump after the program halts")
    run.add_argument("--trace", action="store_true", help="Print execution events to stderr")
    run.add_argument("--debug", action="store_true", help="Print every executed instruction to stdout")
    run.add_argument(
        "--visualize",
        nargs="?",
        const="gui",
        choices=["gui", "curses"],
        help="Step through execution interactively (optional mode: gui or curses)",
    )

    disasm = commands.add_parser("disasm", help="Print a listing of a program")
    _add_source_arguments(disasm)
    disasm.add_argument("--start", type=int, default=0, help="Address to start the listing at")

    chain = commands.add_parser("chain", help="Run a chain of machines seeded with phase settings")
    _add_source_arguments(chain)
    chain.add_argument("--phases", type=_int_list, required=True, help="Comma separated phase settings")
    chain.add_argument("--signal", type=int, default=0, help="Initial signal fed to the first machine")
    chain.add_argument("--feedback", action="store_true", help="Loop the last machine's output back to the first")
    chain.add_argument("--search", action="store_true", help="Try every ordering of --phases and report the best")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        source = _read_source(parser, args)
        if args.command == "run":
            return _run(args, source)
        if args.command == "disasm":
            print(format_listing(disassemble(parse_program(source), start=args.start)))
            return 0
        if args.command == "chain":
            return _chain(args, source)
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except IntcodeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    parser.error(f"unknown command {args.command!r}")
    return 2


def _run(args: argparse.Namespace, source: str) -> int:
    vm = IntcodeVM(source, record_events=args.trace)
    if args.noun is not None:
        vm.write_memory(1, args.noun)
    if args.verb is not None:
        vm.write_memory(2, args.verb)
    vm.input_many(args.inputs)

    if args.visualize:
        return _visualize(vm, args.visualize)

    while True:
        state = vm.run(debug=args.debug)
        for value in vm.output_all():
            print(value)
        if args.trace:
            _print_events(vm)
        if state is ExecutionState.HALTED:
            break
        line = sys.stdin.readline()
        if not line:
            print(f"error: program is waiting for input at pc={vm.pc} but stdin is exhausted", file=sys.stderr)
            return 1
        try:
            vm.input(int(line.strip(), 10))
        except ValueError:
            print(f"error: input {line.strip()!r} is not an integer", file=sys.stderr)
            return 1
    if args.dump:
        print(vm.debug_dump())
    return 0


def _print_events(vm: IntcodeVM) -> None:
    for event in vm.drain_events():
        print(format_event(event), file=sys.stderr)


def _chain(args: argparse.Namespace, source: str) -> int:
    if args.search:
        signal, phases = best_phase_setting(source, args.phases, initial=args.signal, feedback=args.feedback)
        print(f"{signal} {','.join(str(phase) for phase in phases)}")
        return 0
    print(run_chain(source, args.phases, initial=args.signal, feedback=args.feedback))
    return 0


def _visualize(vm: IntcodeVM, mode: str) -> int:  # pragma: no cover - interactive utility
    vm_class = None
    gui_exc: Exception | None = None
    if mode == "gui":
        try:
            from .visualizer_gui import VMVisualizer as vm_class
        except ImportError as exc:
            gui_exc = exc
            mode = "curses"
    if mode == "curses":
        try:
            from .visualizer import VMVisualizer as vm_class
        except ImportError as headless_exc:
            if gui_exc is not None:
                print(f"Visualizer unavailable. GUI error: {gui_exc}; Headless error: {headless_exc}", file=sys.stderr)
            else:
                print(f"Visualizer unavailable: {headless_exc}", file=sys.stderr)
            return 1
    assert vm_class is not None
    vm_class(vm).run()
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
