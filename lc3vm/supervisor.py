"""Memory with a supervisor-mode register guarding its own updates."""

from __future__ import annotations

import os
from typing import MutableSequence, Optional, Union

from lc3vm.console import Keyboard
from lc3vm.dump import write_state
from lc3vm.machine import WORD_MASK, Memory

PathLike = Union[str, "os.PathLike[str]"]

SUPERVISOR_MODE = 0xFE04


class SupervisedMemory(Memory):
    """Memory in which the supervisor-mode register is writable only in supervisor mode.

    A write to the register while it reads 0 (user mode) is refused. When a
    ``dump_path`` is set, the machine state is written there at that moment.
    ``registers`` is the register file included in such a dump; the machine
    that owns this memory is expected to attach its own.
    """

    def __init__(
        self,
        keyboard: Optional[Keyboard] = None,
        dump_path: Optional[PathLike] = None,
        registers: Optional[MutableSequence[int]] = None,
    ) -> None:
        super().__init__(keyboard)
        self.dump_path = dump_path
        self.registers: MutableSequence[int] = [] if registers is None else registers

    @property
    def supervisor(self) -> bool:
        """True while the supervisor-mode register is non-zero."""
        return self[SUPERVISOR_MODE] != 0

    def _refuse_mode_change(self) -> None:
        if self.dump_path is not None:
            write_state(self.dump_path, self, self.registers)

    def _write_mode(self, value: int) -> None:
        self[SUPERVISOR_MODE] = value

    def write(self, address: int, value: int) -> None:
        """Write a word, refusing to change the mode register from user mode."""
        address &= WORD_MASK
        if address == SUPERVISOR_MODE:
            if self[SUPERVISOR_MODE] == 0:
                self._refuse_mode_change()
            else:
                self._write_mode(value)
            return
        super().write(address, value)