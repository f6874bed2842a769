"""Plain-text dumps of machine state: every memory word, then every register."""

from __future__ import annotations

import os
from typing import Iterable, Iterator, Union

_WORD_MASK = 0xFFFF


def _state_lines(memory: Iterable[int], registers: Iterable[int]) -> Iterator[str]:
    for address, word in enumerate(memory):
        yield f"M{address}: {int(word) & _WORD_MASK}\n"
    for index, value in enumerate(registers):
        yield f"R{index}: {int(value) & _WORD_MASK}\n"


def format_state(memory: Iterable[int], registers: Iterable[int]) -> str:
    """Render memory and registers as ``M<n>: <value>`` and ``R<n>: <value>`` lines."""
    return "".join(_state_lines(memory, registers))


def write_state(
    path: Union[str, "os.PathLike[str]"],
    memory: Iterable[int],
    registers: Iterable[int],
) -> None:
    """Write the state dump to ``path``, replacing any existing file."""
    with open(path, "w", encoding="ascii", newline="\n") as stream:
        stream.writelines(_state_lines(memory, registers))