import pytest

from intcode import (
    EmptyOutputRead,
    ExecutionState,
    IntcodeVM,
    InvalidProgramText,
    MemoryOutOfBounds,
    UnknownOpcode,
)
from intcode.vm_events import (
    InputRequested,
    InstructionExecuted,
    MachineHalted,
    MachineRebooted,
    OutputProduced,
)

LARGER_COMPARE = (
    "3,21,1008,21,8,20,1005,20,22,107,8,21,20,1006,20,31,"
    "1106,0,36,98,0,0,1002,21,125,20,4,20,1105,1,46,104,"
    "999,1105,1,46,1101,1000,1,20,4,20,1105,1,46,98,99"
)


def run_with(program, *inputs):
    vm = IntcodeVM(program)
    for value in inputs:
        vm.input(value)
    assert vm.run() is ExecutionState.HALTED
    return vm


def test_add_writes_in_place():
    vm = IntcodeVM("1,0,0,0,99")
    assert vm.state is ExecutionState.INITIALIZED
    assert vm.run() is ExecutionState.HALTED
    assert vm.memory == (2, 0, 0, 0, 99)
    assert vm.pc == 5


def test_add_and_multiply_program():
    vm = run_with("1,9,10,3,2,3,11,0,99,30,40,50")
    assert vm[0] == 3500
    assert vm.read_memory(3) == 70


def test_echo_input_to_output():
    vm = run_with("3,0,4,0,99", 42)
    assert vm.output() == 42
    with pytest.raises(EmptyOutputRead):
        vm.output()


@pytest.mark.parametrize("value, expected", [(8, 1), (7, 0), (9, 0)])
def test_equals_position_mode(value, expected):
    vm = run_with("3,9,8,9,10,9,4,9,99,-1,8", value)
    assert vm.output_all() == [expected]


@pytest.mark.parametrize(
    "program, value, expected",
    [
        ("3,9,7,9,10,9,4,9,99,-1,8", 5, 1),
        ("3,9,7,9,10,9,4,9,99,-1,8", 8, 0),
        ("3,3,1108,-1,8,3,4,3,99", 8, 1),
        ("3,3,1107,-1,8,3,4,3,99", 9, 0),
        ("3,12,6,12,15,1,13,14,13,4,13,99,-1,0,1,9", 0, 0),
        ("3,12,6,12,15,1,13,14,13,4,13,99,-1,0,1,9", 5, 1),
        ("3,3,1105,-1,9,1101,0,0,12,4,12,99,1", 0, 0),
        ("3,3,1105,-1,9,1101,0,0,12,4,12,99,1", -3, 1),
    ],
)
def test_comparisons_and_jumps(program, value, expected):
    assert run_with(program, value).output_all() == [expected]


@pytest.mark.parametrize("value, expected", [(7, 999), (8, 1000), (9, 1001)])
def test_larger_comparison_program(value, expected):
    assert run_with(LARGER_COMPARE, value).output_all() == [expected]


def test_mixed_modes_single_step():
    vm = IntcodeVM("1002,4,3,4,33")
    assert vm.step() is ExecutionState.RUNNING
    assert vm[4] == 99
    assert vm.pc == 4
    assert vm.run() is ExecutionState.HALTED


def test_destination_ignores_immediate_flag():
    vm = run_with("11101,2,3,5,99,0")
    assert vm[5] == 5


def test_blocks_without_consuming_and_resumes_same_instruction():
    vm = IntcodeVM("3,11,3,12,1,11,12,13,4,13,99,0,0,0")
    assert vm.run() is ExecutionState.BLOCKED_ON_INPUT
    assert vm.pc == 0
    assert vm.memory[11] == 0

    vm.input(5)
    assert vm.run() is ExecutionState.BLOCKED_ON_INPUT
    assert vm.pc == 2
    assert vm[11] == 5
    assert vm.pending_input == 0

    vm.input(7)
    assert vm.run() is ExecutionState.HALTED
    assert vm.output() == 12


def test_blocked_instruction_is_decoded_again():
    vm = IntcodeVM("3,5,4,5,99,0")
    assert vm.run() is ExecutionState.BLOCKED_ON_INPUT
    # patch the blocked instruction into an output; resumption must see it
    vm[0] = 104
    assert vm.run() is ExecutionState.HALTED
    assert vm.output_all() == [5, 0]


def test_input_queued_before_run_is_consumed_in_order():
    vm = IntcodeVM("3,0,3,1,4,0,4,1,99")
    vm.input_many([11, 22])
    vm.run()
    assert vm.output_all() == [11, 22]


def test_peek_output_is_non_destructive():
    vm = run_with("104,7,104,8,99")
    assert list(vm.peek_output()) == [7, 8]
    assert list(vm.peek_output()) == [7, 8]
    assert vm.output() == 7
    assert list(vm.peek_output()) == [8]
    assert vm.has_output


def test_output_persists_across_runs():
    vm = IntcodeVM("104,1,3,0,104,2,99")
    assert vm.run() is ExecutionState.BLOCKED_ON_INPUT
    vm.input(0)
    vm.run()
    assert vm.output_all() == [1, 2]
    assert vm.output_all() == []


def test_reboot_restores_initial_image():
    vm = IntcodeVM("3,0,4,0,99")
    vm.input(9)
    vm.run()
    vm.write_memory(4, 1)
    vm.input(3)
    vm.reboot()
    assert vm.state is ExecutionState.INITIALIZED
    assert vm.memory == (3, 0, 4, 0, 99)
    assert vm.pc == 0
    assert vm.pending_input == 0
    assert list(vm.peek_output()) == []
    with pytest.raises(EmptyOutputRead):
        vm.output()


def test_run_on_halted_machine_decodes_current_pc():
    vm = IntcodeVM("99,99")
    assert vm.run() is ExecutionState.HALTED
    assert vm.pc == 1
    assert vm.run() is ExecutionState.HALTED
    assert vm.pc == 2
    with pytest.raises(MemoryOutOfBounds) as excinfo:
        vm.run()
    assert excinfo.value.address == 2


def test_invalid_program_text():
    with pytest.raises(InvalidProgramText) as excinfo:
        IntcodeVM("1,x,3")
    assert excinfo.value.index == 1
    with pytest.raises(InvalidProgramText):
        IntcodeVM("")


def test_unknown_opcode_reports_pc():
    vm = IntcodeVM("1101,1,1,5,42,0")
    with pytest.raises(UnknownOpcode) as excinfo:
        vm.run()
    assert excinfo.value.opcode == 42
    assert excinfo.value.pc == 4
    assert "pc=4" in str(excinfo.value)


def test_negative_word_is_unknown_opcode():
    with pytest.raises(UnknownOpcode):
        IntcodeVM("-1").run()


def test_out_of_range_destination_fails():
    with pytest.raises(MemoryOutOfBounds) as excinfo:
        IntcodeVM("1,0,0,100,99").run()
    assert excinfo.value.address == 100
    assert excinfo.value.size == 5


def test_jump_outside_memory_fails_on_next_decode():
    vm = IntcodeVM("1105,1,50")
    with pytest.raises(MemoryOutOfBounds) as excinfo:
        vm.run()
    assert excinfo.value.address == 50


def test_input_to_bad_address_keeps_value_queued():
    vm = IntcodeVM("3,100,99")
    vm.input(1)
    with pytest.raises(MemoryOutOfBounds):
        vm.run()
    assert vm.pending_input == 1


def test_direct_memory_access_is_bounds_checked():
    vm = IntcodeVM("1,2,3")
    assert len(vm) == 3
    with pytest.raises(MemoryOutOfBounds):
        vm.read_memory(-1)
    with pytest.raises(MemoryOutOfBounds):
        vm.write_memory(3, 0)
    with pytest.raises(IndexError):
        vm[3]


def test_debug_dump_format():
    vm = run_with("1,0,0,0,99")
    assert vm.debug_dump() == "[5] 2, 0, 0, 0, 99"
    assert str(vm) == vm.debug_dump()


def test_instances_do_not_share_state():
    first = IntcodeVM("3,0,4,0,99")
    second = IntcodeVM("3,0,4,0,99")
    first.input(1)
    assert second.pending_input == 0
    first.run()
    assert second.run() is ExecutionState.BLOCKED_ON_INPUT
    assert second.memory == (3, 0, 4, 0, 99)


def test_events_record_execution():
    vm = IntcodeVM("1002,4,3,4,33", record_events=True)
    assert vm.drain_events() == [MachineRebooted(size=5)]
    vm.run()
    assert vm.drain_events() == [
        InstructionExecuted(pc=0, word=1002, mnemonic="MUL", operands=(4, 3, 4), next_pc=4, write=(4, 99)),
        InstructionExecuted(pc=4, word=99, mnemonic="HALT", operands=(), next_pc=5),
        MachineHalted(pc=4),
    ]
    assert vm.drain_events() == []


def test_events_for_blocking_and_output():
    vm = IntcodeVM("3,0,4,0,99", record_events=True)
    vm.drain_events()
    vm.run()
    assert vm.drain_events() == [InputRequested(pc=0)]
    vm.input(6)
    vm.run()
    events = vm.drain_events()
    assert OutputProduced(pc=2, value=6) in events


def test_events_are_off_by_default():
    vm = run_with("1,0,0,0,99")
    assert vm.drain_events() == []


def test_debug_trace_printing(capsys):
    vm = IntcodeVM("1002,4,3,4,33")
    vm.run(debug=True)
    out = capsys.readouterr().out
    assert "[PC=0] EXEC: MUL [4], #3, [4]" in out
    assert "WRITE: [4] = 99" in out
    assert "STATE: HALTED" in out


def test_snapshot_state_is_a_copy():
    vm = IntcodeVM("3,0,104,5,99")
    vm.input(4)
    snapshot = vm.snapshot_state()
    vm.run()
    assert snapshot.state is ExecutionState.INITIALIZED
    assert snapshot.memory == (3, 0, 104, 5, 99)
    assert snapshot.pending_input == (4,)
    assert snapshot.size == 5
    assert vm.snapshot_state().pending_output == (5,)


def test_current_instruction_decodes_without_executing():
    vm = IntcodeVM("1002,4,3,4,33")
    inst = vm.current_instruction()
    assert inst.spec.mnemonic == "MUL"
    assert vm.state is ExecutionState.INITIALIZED
    assert vm[4] == 33
