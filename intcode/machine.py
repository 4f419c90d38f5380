from __future__ import annotations

from types import MappingProxyType
from typing import Callable, Iterable, Iterator, List, Mapping, Optional, Tuple

from .buffers import FifoBuffer
from .disassembler import format_instruction
from .opcodes import DecodedInstruction, Opcode, ParameterMode, decode_word
from .program_io import parse_program
from .vm_errors import EmptyOutputRead, MemoryOutOfBounds
from .vm_events import (
    ExecutionState,
    InputRequested,
    InstructionExecuted,
    MachineHalted,
    MachineRebooted,
    OutputProduced,
    VMEvent,
    VMStateSnapshot,
)


class IntcodeVM:
    """Resumable Intcode interpreter.

    A VM is built once from program text and driven by calling :meth:`run`
    repeatedly. ``run`` returns when the program halts or when it reaches an
    input instruction with nothing queued; in the latter case the caller
    feeds more values with :meth:`input` and calls ``run`` again, and the
    same instruction is decoded afresh.
    """

    def __init__(self, program: str, *, record_events: bool = False):
        self._program = program
        self.record_events = record_events
        self._event_buffer: List[VMEvent] = []
        self._memory: List[int] = []
        self._pc = 0
        self._input = FifoBuffer()
        self._output = FifoBuffer()
        self._state = ExecutionState.INITIALIZED
        self._last_write: Optional[Tuple[int, int]] = None
        self.reboot()

    # -------------------- Lifecycle --------------------
    def reboot(self) -> None:
        """Restore the freshly loaded program, dropping all buffered values."""
        self._memory = parse_program(self._program)
        self._pc = 0
        self._input.clear()
        self._output.clear()
        self._state = ExecutionState.INITIALIZED
        self.emit_event(MachineRebooted(size=len(self._memory)))

    @property
    def state(self) -> ExecutionState:
        return self._state

    @property
    def pc(self) -> int:
        return self._pc

    @property
    def program(self) -> str:
        return self._program

    @property
    def memory(self) -> Tuple[int, ...]:
        return tuple(self._memory)

    def __len__(self) -> int:
        return len(self._memory)

    # -------------------- Buffers --------------------
    def input(self, value: int) -> None:
        self._input.push(int(value))

    def input_many(self, values: Iterable[int]) -> None:
        for value in values:
            self.input(value)

    def output(self) -> int:
        value = self._output.try_pop()
        if value is None:
            raise EmptyOutputRead()
        return value

    def output_all(self) -> List[int]:
        return self._output.drain()

    def peek_output(self) -> Iterator[int]:
        yield from self._output.snapshot()

    @property
    def has_output(self) -> bool:
        return bool(self._output)

    @property
    def pending_input(self) -> int:
        return len(self._input)

    # -------------------- Memory access --------------------
    def _check_address(self, address: int) -> int:
        if not 0 <= address < len(self._memory):
            pc = self._pc if self._state is ExecutionState.RUNNING else None
            raise MemoryOutOfBounds(address, len(self._memory), pc=pc)
        return address

    def read_memory(self, address: int) -> int:
        return self._memory[self._check_address(address)]

    def write_memory(self, address: int, value: int) -> None:
        self._memory[self._check_address(address)] = int(value)

    def __getitem__(self, address: int) -> int:
        return self.read_memory(address)

    def __setitem__(self, address: int, value: int) -> None:
        self.write_memory(address, value)

    def debug_dump(self) -> str:
        return f"[{self._pc}] {', '.join(str(value) for value in self._memory)}"

    def __str__(self):
        return self.debug_dump()

    def __repr__(self):
        return f"<IntcodeVM pc={self._pc} state={self._state.name} size={len(self._memory)}>"

    def snapshot_state(self) -> VMStateSnapshot:
        return VMStateSnapshot(
            pc=self._pc,
            state=self._state,
            memory=tuple(self._memory),
            pending_input=self._input.snapshot(),
            pending_output=self._output.snapshot(),
        )

    # -------------------- Debug/event helpers --------------------
    def emit_event(self, event: VMEvent) -> None:
        if self.record_events:
            self._event_buffer.append(event)

    def drain_events(self) -> List[VMEvent]:
        events = list(self._event_buffer)
        self._event_buffer.clear()
        return events

    def _raw_params(self, inst: DecodedInstruction) -> Tuple[int, ...]:
        start = inst.address + 1
        return tuple(self._memory[start : start + inst.spec.params])

    # -------------------- Execution --------------------
    def current_instruction(self) -> DecodedInstruction:
        word = self.read_memory(self._pc)
        return decode_word(word, self._pc)

    def step(self, debug: bool = False) -> ExecutionState:
        """Executes a single instruction."""
        self._state = ExecutionState.RUNNING
        self._cycle(debug)
        return self._state

    def run(self, debug: bool = False) -> ExecutionState:
        self._state = ExecutionState.RUNNING
        while self._state is ExecutionState.RUNNING:
            self._cycle(debug)
        if debug:
            print(f"[PC={self._pc}] STATE: {self._state.name}")
        return self._state

    def _cycle(self, debug: bool) -> None:
        pc = self._pc
        word = self.read_memory(pc)
        inst = decode_word(word, pc)

        if inst.opcode is Opcode.INPUT and not self._input:
            self._state = ExecutionState.BLOCKED_ON_INPUT
            self.emit_event(InputRequested(pc=pc))
            return

        params = self._raw_params(inst) if debug or self.record_events else ()
        if debug:
            print(f"[PC={pc}] EXEC: {format_instruction(inst, params)}")

        self._last_write = None
        _HANDLERS[inst.opcode](self, inst)
        self._pc += inst.spec.size

        if debug:
            if self._last_write is not None:
                address, value = self._last_write
                print(f"  WRITE: [{address}] = {value}")
            print(f"  OUTPUT: {list(self._output)}\n")

        if self.record_events:
            self.emit_event(
                InstructionExecuted(
                    pc=pc,
                    word=word,
                    mnemonic=inst.spec.mnemonic,
                    operands=params,
                    next_pc=self._pc,
                    write=self._last_write,
                )
            )
            if inst.opcode is Opcode.HALT:
                self.emit_event(MachineHalted(pc=pc))

    def _param(self, inst: DecodedInstruction, position: int) -> int:
        raw = self.read_memory(inst.address + 1 + position)
        if inst.modes[position] is ParameterMode.IMMEDIATE:
            return raw
        return self.read_memory(raw)

    def _store(self, inst: DecodedInstruction, position: int, value: int) -> None:
        # Destinations are addresses regardless of the mode digit.
        address = self.read_memory(inst.address + 1 + position)
        self.write_memory(address, value)
        self._last_write = (address, value)

    # -------------------- Opcode handlers --------------------
    def _op_ADD(self, inst: DecodedInstruction) -> None:
        self._store(inst, 2, self._param(inst, 0) + self._param(inst, 1))

    def _op_MUL(self, inst: DecodedInstruction) -> None:
        self._store(inst, 2, self._param(inst, 0) * self._param(inst, 1))

    def _op_INPUT(self, inst: DecodedInstruction) -> None:
        address = self.read_memory(inst.address + 1)
        self._check_address(address)
        self._store(inst, 0, self._input.pop())

    def _op_OUTPUT(self, inst: DecodedInstruction) -> None:
        value = self._param(inst, 0)
        self._output.push(value)
        self.emit_event(OutputProduced(pc=inst.address, value=value))

    def _op_JUMP_IF_TRUE(self, inst: DecodedInstruction) -> None:
        if self._param(inst, 0) != 0:
            self._pc = self._param(inst, 1)
        else:
            self._pc = inst.address + 3

    def _op_JUMP_IF_FALSE(self, inst: DecodedInstruction) -> None:
        if self._param(inst, 0) == 0:
            self._pc = self._param(inst, 1)
        else:
            self._pc = inst.address + 3

    def _op_LESS_THAN(self, inst: DecodedInstruction) -> None:
        self._store(inst, 2, 1 if self._param(inst, 0) < self._param(inst, 1) else 0)

    def _op_EQUALS(self, inst: DecodedInstruction) -> None:
        self._store(inst, 2, 1 if self._param(inst, 0) == self._param(inst, 1) else 0)

    def _op_HALT(self, inst: DecodedInstruction) -> None:
        self._state = ExecutionState.HALTED


# Opcode dispatch table, shared by all instances.
_HANDLERS: Mapping[Opcode, Callable[[IntcodeVM, DecodedInstruction], None]] = MappingProxyType(
    {
        Opcode.ADD: IntcodeVM._op_ADD,
        Opcode.MUL: IntcodeVM._op_MUL,
        Opcode.INPUT: IntcodeVM._op_INPUT,
        Opcode.OUTPUT: IntcodeVM._op_OUTPUT,
        Opcode.JUMP_IF_TRUE: IntcodeVM._op_JUMP_IF_TRUE,
        Opcode.JUMP_IF_FALSE: IntcodeVM._op_JUMP_IF_FALSE,
        Opcode.LESS_THAN: IntcodeVM._op_LESS_THAN,
        Opcode.EQUALS: IntcodeVM._op_EQUALS,
        Opcode.HALT: IntcodeVM._op_HALT,
    }
)


__all__ = ["IntcodeVM"]
