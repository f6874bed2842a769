# lc3vm

A library implementing the LC-3, the small 16-bit computer used to teach
computer organisation. It provides the processor, 64K words of memory
with memory-mapped keyboard registers, an object-image loader, memory
variants with a supervisor-mode register and a memory protection unit,
and a plain-text dump of the machine state.

## Installing

```
pip install .
```

To run the test suite as well:

```
pip install ".[test]"
pytest
```

## Modules

- `lc3vm.machine` — `VM`, `Memory`, the `Register`, `Opcode`, `Flag` and
  `TrapCode` enumerations, `BadOpcodeError`, and the helpers
  `sign_extend` and `swap16`.
- `lc3vm.console` — the `Keyboard` base class, `BufferedKeyboard` for
  scripted input, `TerminalKeyboard` for a file descriptor such as stdin,
  and the `raw_mode` context manager.
- `lc3vm.supervisor` — `SupervisedMemory`.
- `lc3vm.protection` — `ProtectedMemory`.
- `lc3vm.dump` — `format_state` and `write_state`.

## The machine

A `VM` starts with the program counter at `0x3000` and the condition
register set to zero (`Flag.ZRO`). `VM.step()` fetches and executes one
instruction; `VM.run(max_steps=None)` executes until `VM.halt()` has been
called or the step limit is reached, and returns the number of
instructions executed.

All LC-3 instructions are executed except `RTI` and the reserved opcode,
which raise `BadOpcodeError` carrying the instruction and its address.
Arithmetic wraps at 16 bits.

```python
from lc3vm.machine import VM, Memory, Register

memory = Memory()
memory[0x3000] = 0x1261  # ADD R1, R1, #1
vm = VM(memory)
vm.run(max_steps=1)
assert vm.registers[Register.R1] == 1
```

### Memory and images

`Memory.load_image(stream)` reads a big-endian object image — an origin
word followed by the words to place there — and returns the origin;
`Memory.load_image_file(path)` does the same for a file. Images loaded
one after another may overwrite each other.

Indexing (`memory[address]`) reads and writes words directly.
`Memory.read` and `Memory.write` are the processor's accesses: reading
`0xFE00` (keyboard status) polls the attached keyboard, setting the
status to `0x8000` and storing the next byte at `0xFE02` (keyboard data)
when a key is waiting, and to 0 otherwise.

### Keyboards and the terminal

`BufferedKeyboard(data)` serves the given bytes (or text, encoded as
UTF-8) and then reports end of input as -1. `TerminalKeyboard(stream)`
polls and reads single bytes from a stream's file descriptor, stdin by
default. `raw_mode(stream)` turns off line buffering and echo on a
terminal for the duration of a `with` block and restores them afterwards;
streams that are not terminals are left alone.

### Supervisor mode

`SupervisedMemory` treats `0xFE04` as a supervisor-mode register. A
processor write to it is refused while it reads 0 (user mode); if
`dump_path` is set, the machine state is written to that file at that
moment, using the register list given as `registers`.

### Memory protection

`ProtectedMemory` adds a protection register at `0xFE06`. While the
supervisor-mode register equals 1, the protection setting decides which
processor writes go through: 0 allows every address, 1 to 6 allow only
the 4K-word region starting at `0x3000`, `0x4000`, … `0x8000`
respectively, and other values allow nothing. A refused write inside a
region setting prints `Access denied when MR_MPU = <n>.` to `output`
(stdout by default). `allowed_region()` returns the writable addresses
as a `range`. The protection register itself is always writable, and the
supervisor-mode register can only be changed while protection is 0.

### State dumps

`format_state(memory, registers)` renders every memory word as
`M<address>: <value>` followed by every register as `R<index>: <value>`,
one per line; `write_state(path, memory, registers)` writes the same text
to a file.

## What this package does not do

- There is no command-line program; machines are built and run from
  Python.
- No trap routines are supplied. A `VM` takes a `traps` object whose
  `handle(vm, code)` method services each `TRAP` instruction; without
  one, executing `TRAP` raises `RuntimeError`. Console output, input and
  halting for LC-3 programs are therefore up to the handler you provide.