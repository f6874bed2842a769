"""Memory with a protection unit confining supervisor-mode writes to one region."""

from __future__ import annotations

import sys
from typing import MutableSequence, Optional, TextIO

from lc3vm.console import Keyboard
from lc3vm.machine import MEMORY_SIZE, WORD_MASK
from lc3vm.supervisor import SUPERVISOR_MODE, PathLike, SupervisedMemory

MEMORY_PROTECTION = 0xFE06
REGION_SIZE = 0x1000
_FIRST_REGION = 0x3000
_REGION_COUNT = 6


class ProtectedMemory(SupervisedMemory):
    """Supervised memory whose protection register selects a writable region.

    In supervisor mode (mode register equal to 1) the protection register
    chooses what may be written: 0 allows everything, 1 to 6 allow only the
    4K-word region starting at 0x3000, 0x4000 and so on up to 0x8000, and any
    other setting allows nothing. Refused writes inside a region setting
    print a notice to ``output``. Outside supervisor mode every write goes
    through. The protection register itself is always writable.
    """

    def __init__(
        self,
        keyboard: Optional[Keyboard] = None,
        dump_path: Optional[PathLike] = None,
        registers: Optional[MutableSequence[int]] = None,
        output: Optional[TextIO] = None,
    ) -> None:
        super().__init__(keyboard, dump_path, registers)
        self.output = output

    @property
    def protection(self) -> int:
        return self[MEMORY_PROTECTION]

    def allowed_region(self) -> range:
        """Addresses the current protection setting lets supervisor code write."""
        setting = self.protection
        if setting == 0:
            return range(MEMORY_SIZE)
        if 1 <= setting <= _REGION_COUNT:
            start = _FIRST_REGION + (setting - 1) * REGION_SIZE
            return range(start, start + REGION_SIZE)
        return range(0)

    def _write_mode(self, value: int) -> None:
        if self.protection == 0:
            self[SUPERVISOR_MODE] = value

    def _deny(self, setting: int) -> None:
        stream = sys.stdout if self.output is None else self.output
        stream.write(f"Access denied when MR_MPU = {setting}.\n")

    def write(self, address: int, value: int) -> None:
        """Write a word, subject to the mode and protection registers."""
        address &= WORD_MASK
        if address == SUPERVISOR_MODE:
            super().write(address, value)
            return
        if address == MEMORY_PROTECTION or self[SUPERVISOR_MODE] != 1:
            self[address] = value
            return
        setting = self.protection
        if address in self.allowed_region():
            self[address] = value
        elif 1 <= setting <= _REGION_COUNT:
            self._deny(setting)