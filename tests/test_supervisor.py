import io

import pytest

from lc3vm.console import BufferedKeyboard
from lc3vm.machine import KBDR, KBSR, VM, Register
from lc3vm.supervisor import SUPERVISOR_MODE, SupervisedMemory


def test_ordinary_write_is_stored():
    memory = SupervisedMemory()
    memory.write(0x3000, 42)
    assert memory[0x3000] == 42


def test_write_masks_to_sixteen_bits():
    memory = SupervisedMemory()
    memory.write(0x4000, 0x1_2345)
    assert memory[0x4000] == 0x2345


def test_mode_write_refused_in_user_mode_without_dump():
    memory = SupervisedMemory()
    memory.write(SUPERVISOR_MODE, 1)
    assert memory[SUPERVISOR_MODE] == 0
    assert memory.supervisor is False


def test_mode_write_refused_in_user_mode_dumps_state(tmp_path):
    path = tmp_path / "out.txt"
    registers = [0] * 10
    registers[Register.R3] = 5
    memory = SupervisedMemory(dump_path=path, registers=registers)
    memory[0x3000] = 7
    memory.write(SUPERVISOR_MODE, 1)
    assert memory[SUPERVISOR_MODE] == 0
    lines = path.read_text().splitlines()
    assert lines[0] == "M0: 0"
    assert f"M{0x3000}: 7" in lines
    assert "R3: 5" in lines
    assert len(lines) == len(memory) + len(registers)


def test_mode_write_allowed_in_supervisor_mode(tmp_path):
    path = tmp_path / "out.txt"
    memory = SupervisedMemory(dump_path=path)
    memory[SUPERVISOR_MODE] = 1
    assert memory.supervisor is True
    memory.write(SUPERVISOR_MODE, 0)
    assert memory[SUPERVISOR_MODE] == 0
    assert not path.exists()


def test_keyboard_polling_still_works():
    memory = SupervisedMemory(keyboard=BufferedKeyboard(b"a"))
    assert memory.read(KBSR) == 1 << 15
    assert memory.read(KBDR) == ord("a")
    assert memory.read(KBSR) == 0


def test_vm_store_to_mode_register_from_user_mode_is_refused(tmp_path):
    path = tmp_path / "out.txt"
    memory = SupervisedMemory(dump_path=path)
    vm = VM(memory=memory, output=io.StringIO())
    memory.registers = vm.registers
    # LD R1, #1 ; STR R0, R1, #0 ; .FILL SUPERVISOR_MODE
    memory[0x3000] = 0x2201
    memory[0x3001] = 0x7040
    memory[0x3002] = SUPERVISOR_MODE
    vm.registers[Register.R0] = 1
    assert vm.run(2) == 2
    assert memory[SUPERVISOR_MODE] == 0
    assert "R0: 1" in path.read_text().splitlines()


@pytest.mark.parametrize("value", [1, 0x8000, 0xFFFF])
def test_supervisor_can_set_any_mode_value(value):
    memory = SupervisedMemory()
    memory[SUPERVISOR_MODE] = 1
    memory.write(SUPERVISOR_MODE, value)
    assert memory[SUPERVISOR_MODE] == value