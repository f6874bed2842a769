import io
import os

import pytest

from lc3vm.console import BufferedKeyboard, Keyboard, TerminalKeyboard, raw_mode


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    reader = open(read_fd, "rb", buffering=0)
    writer = open(write_fd, "wb", buffering=0)
    yield reader, writer
    reader.close()
    if not writer.closed:
        writer.close()


def test_buffered_keyboard_returns_bytes_in_order():
    keyboard = BufferedKeyboard(b"ab")
    assert keyboard.check_key() is True
    assert keyboard.getchar() == ord("a")
    assert keyboard.getchar() == ord("b")
    assert keyboard.check_key() is False


def test_buffered_keyboard_accepts_text():
    keyboard = BufferedKeyboard("xy")
    assert [keyboard.getchar(), keyboard.getchar()] == [ord("x"), ord("y")]


def test_buffered_keyboard_end_of_input():
    keyboard = BufferedKeyboard()
    assert keyboard.check_key() is False
    assert keyboard.getchar() == -1


def test_keyboard_is_abstract():
    with pytest.raises(TypeError):
        Keyboard()


def test_terminal_keyboard_reports_no_key_on_empty_pipe(pipe):
    reader, _ = pipe
    assert TerminalKeyboard(reader).check_key() is False


def test_terminal_keyboard_reads_written_byte(pipe):
    reader, writer = pipe
    writer.write(b"q")
    keyboard = TerminalKeyboard(reader)
    assert keyboard.check_key() is True
    assert keyboard.getchar() == ord("q")
    assert keyboard.check_key() is False


def test_terminal_keyboard_end_of_input(pipe):
    reader, writer = pipe
    writer.close()
    assert TerminalKeyboard(reader).getchar() == -1


def test_raw_mode_yields_non_terminal_stream_unchanged():
    stream = io.StringIO("data")
    with raw_mode(stream) as inside:
        assert inside is stream
    assert stream.read() == "data"


def test_raw_mode_on_pipe_is_passthrough(pipe):
    reader, _ = pipe
    with raw_mode(reader) as inside:
        assert inside is reader


def test_raw_mode_propagates_errors():
    stream = io.StringIO("data")
    seen = []
    with pytest.raises(KeyError) as info:
        with raw_mode(stream) as inside:
            seen.append(inside)
            raise KeyError("inside")
    assert info.value.args == ("inside",)
    assert seen == [stream]
    assert stream.read() == "data"