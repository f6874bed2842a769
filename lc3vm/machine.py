"""The LC-3 processor: registers, memory and the fetch/execute cycle."""

from __future__ import annotations

import sys
from enum import IntEnum
from typing import BinaryIO, Callable, Dict, Iterator, List, Optional, TextIO, Union

from lc3vm.console import Keyboard

MEMORY_SIZE = 1 << 16
WORD_MASK = 0xFFFF
PC_START = 0x3000

KBSR = 0xFE00
KBDR = 0xFE02


class Register(IntEnum):
    R0 = 0
    R1 = 1
    R2 = 2
    R3 = 3
    R4 = 4
    R5 = 5
    R6 = 6
    R7 = 7
    PC = 8
    COND = 9


REGISTER_COUNT = len(Register)


class Opcode(IntEnum):
    BR = 0
    ADD = 1
    LD = 2
    ST = 3
    JSR = 4
    AND = 5
    LDR = 6
    STR = 7
    RTI = 8
    NOT = 9
    LDI = 10
    STI = 11
    JMP = 12
    RES = 13
    LEA = 14
    TRAP = 15


class Flag(IntEnum):
    POS = 1 << 0
    ZRO = 1 << 1
    NEG = 1 << 2


class TrapCode(IntEnum):
    GETC = 0x20
    OUT = 0x21
    PUTS = 0x22
    IN = 0x23
    PUTSP = 0x24
    HALT = 0x25
    YIELD = 0x26


class BadOpcodeError(Exception):
    """Raised when the machine fetches an instruction it cannot execute."""

    def __init__(self, instruction: int, address: int) -> None:
        self.instruction = instruction
        self.address = address
        self.opcode = instruction >> 12
        super().__init__(
            f"bad opcode {self.opcode:#x} in instruction {instruction:#06x} "
            f"at {address:#06x}"
        )


def sign_extend(value: int, bit_count: int) -> int:
    """Sign-extend the low ``bit_count`` bits of ``value`` to 16 bits."""
    value &= WORD_MASK
    if (value >> (bit_count - 1)) & 1:
        value |= (WORD_MASK << bit_count) & WORD_MASK
    return value


def swap16(value: int) -> int:
    """Swap the two bytes of a 16-bit word."""
    return ((value << 8) | (value >> 8)) & WORD_MASK


class Memory:
    """64K words of memory with the memory-mapped keyboard registers."""

    def __init__(self, keyboard: Optional[Keyboard] = None) -> None:
        self.keyboard = keyboard
        self._words: List[int] = [0] * MEMORY_SIZE

    def __len__(self) -> int:
        return MEMORY_SIZE

    def __iter__(self) -> Iterator[int]:
        return iter(self._words)

    def __getitem__(self, address: int) -> int:
        if not 0 <= address < MEMORY_SIZE:
            raise IndexError(f"address {address:#x} out of range")
        return self._words[address]

    def __setitem__(self, address: int, value: int) -> None:
        if not 0 <= address < MEMORY_SIZE:
            raise IndexError(f"address {address:#x} out of range")
        self._words[address] = value & WORD_MASK

    def read(self, address: int) -> int:
        """Read a word as the processor does, polling the keyboard at KBSR."""
        address &= WORD_MASK
        if address == KBSR:
            if self.keyboard is not None and self.keyboard.check_key():
                self._words[KBSR] = 1 << 15
                self._words[KBDR] = self.keyboard.getchar() & WORD_MASK
            else:
                self._words[KBSR] = 0
        return self._words[address]

    def write(self, address: int, value: int) -> None:
        """Write a word as the processor does."""
        self._words[address & WORD_MASK] = value & WORD_MASK

    def load_image(self, stream: BinaryIO) -> int:
        """Load a big-endian object image and return its origin."""
        header = stream.read(2)
        if len(header) < 2:
            raise ValueError("image is missing its origin word")
        origin = int.from_bytes(header, "big")
        max_words = WORD_MASK - origin
        data = stream.read(max_words * 2)
        count = len(data) // 2
        for offset in range(count):
            self._words[origin + offset] = int.from_bytes(
                data[offset * 2 : offset * 2 + 2], "big"
            )
        return origin

    def load_image_file(self, path: Union[str, "os.PathLike[str]"]) -> int:
        """Load an object image from a file and return its origin."""
        with open(path, "rb") as stream:
            return self.load_image(stream)


def _dr(instr: int) -> int:
    return (instr >> 9) & 0x7


def _sr1(instr: int) -> int:
    return (instr >> 6) & 0x7


class VM:
    """An LC-3 processor attached to memory and a trap handler."""

    def __init__(
        self,
        memory: Optional[Memory] = None,
        traps=None,
        output: Optional[TextIO] = None,
    ) -> None:
        self.memory = Memory() if memory is None else memory
        self.traps = traps
        self.output = sys.stdout if output is None else output
        self.registers: List[int] = [0] * REGISTER_COUNT
        self.registers[Register.COND] = Flag.ZRO
        self.registers[Register.PC] = PC_START
        self.running = True

    @property
    def keyboard(self) -> Optional[Keyboard]:
        return self.memory.keyboard

    def update_flags(self, index: int) -> None:
        value = self.registers[index]
        if value == 0:
            self.registers[Register.COND] = Flag.ZRO
        elif value >> 15:
            self.registers[Register.COND] = Flag.NEG
        else:
            self.registers[Register.COND] = Flag.POS

    def halt(self) -> None:
        self.running = False

    def step(self) -> None:
        """Fetch and execute one instruction."""
        address = self.registers[Register.PC]
        instr = self.memory.read(address)
        self.registers[Register.PC] = (address + 1) & WORD_MASK
        handler = self._HANDLERS.get(instr >> 12)
        if handler is None:
            raise BadOpcodeError(instr, address)
        handler(self, instr)

    def run(self, max_steps: Optional[int] = None) -> int:
        """Execute until halted or ``max_steps`` instructions; return the count."""
        steps = 0
        while self.running and (max_steps is None or steps < max_steps):
            self.step()
            steps += 1
        return steps

    def _set(self, index: int, value: int) -> None:
        self.registers[index] = value & WORD_MASK
        self.update_flags(index)

    def _pc_relative(self, instr: int) -> int:
        return (self.registers[Register.PC] + sign_extend(instr & 0x1FF, 9)) & WORD_MASK

    def _base_relative(self, instr: int) -> int:
        return (self.registers[_sr1(instr)] + sign_extend(instr & 0x3F, 6)) & WORD_MASK

    def _second_operand(self, instr: int) -> int:
        if (instr >> 5) & 0x1:
            return sign_extend(instr & 0x1F, 5)
        return self.registers[instr & 0x7]

    def _add(self, instr: int) -> None:
        self._set(_dr(instr), self.registers[_sr1(instr)] + self._second_operand(instr))

    def _and(self, instr: int) -> None:
        self._set(_dr(instr), self.registers[_sr1(instr)] & self._second_operand(instr))

    def _not(self, instr: int) -> None:
        self._set(_dr(instr), ~self.registers[_sr1(instr)])

    def _br(self, instr: int) -> None:
        if _dr(instr) & self.registers[Register.COND]:
            self.registers[Register.PC] = self._pc_relative(instr)

    def _jmp(self, instr: int) -> None:
        self.registers[Register.PC] = self.registers[_sr1(instr)]

    def _jsr(self, instr: int) -> None:
        self.registers[Register.R7] = self.registers[Register.PC]
        if (instr >> 11) & 1:
            offset = sign_extend(instr & 0x7FF, 11)
            self.registers[Register.PC] = (self.registers[Register.PC] + offset) & WORD_MASK
        else:
            self.registers[Register.PC] = self.registers[_sr1(instr)]

    def _ld(self, instr: int) -> None:
        self._set(_dr(instr), self.memory.read(self._pc_relative(instr)))

    def _ldi(self, instr: int) -> None:
        pointer = self.memory.read(self._pc_relative(instr))
        self._set(_dr(instr), self.memory.read(pointer))

    def _ldr(self, instr: int) -> None:
        self._set(_dr(instr), self.memory.read(self._base_relative(instr)))

    def _lea(self, instr: int) -> None:
        self._set(_dr(instr), self._pc_relative(instr))

    def _st(self, instr: int) -> None:
        self.memory.write(self._pc_relative(instr), self.registers[_dr(instr)])

    def _sti(self, instr: int) -> None:
        pointer = self.memory.read(self._pc_relative(instr))
        self.memory.write(pointer, self.registers[_dr(instr)])

    def _str(self, instr: int) -> None:
        self.memory.write(self._base_relative(instr), self.registers[_dr(instr)])

    def _trap(self, instr: int) -> None:
        if self.traps is None:
            raise RuntimeError("no trap handler installed")
        self.traps.handle(self, instr & 0xFF)

    _HANDLERS: Dict[int, Callable[["VM", int], None]] = {
        Opcode.BR: _br,
        Opcode.ADD: _add,
        Opcode.LD: _ld,
        Opcode.ST: _st,
        Opcode.JSR: _jsr,
        Opcode.AND: _and,
        Opcode.LDR: _ldr,
        Opcode.STR: _str,
        Opcode.NOT: _not,
        Opcode.LDI: _ldi,
        Opcode.STI: _sti,
        Opcode.JMP: _jmp,
        Opcode.LEA: _lea,
        Opcode.TRAP: _trap,
    }