"""
Raw input decoding for the svi text editor.

Turns the terminal's byte stream into key events. Multi-byte keys start with
an escape byte; the rest of the sequence is read with non-blocking lookahead.
If nothing follows an escape byte right away it is taken to be the Escape key
itself, so a sequence whose bytes arrive with a delay in between will be
misread as Escape followed by ordinary characters.
"""
import enum
from collections import deque
from dataclasses import dataclass

ESC = 0x1b
MAX_SEQUENCE = 32  # parameter bytes read before a runaway sequence is abandoned

# ESC [ <parameters> <final>
CSI_PARAMETER = range(0x20, 0x40)
CSI_FINAL = range(0x40, 0x7f)


class Key(enum.Enum):
    CHAR = "char"
    CTRL = "ctrl"
    ESCAPE = "escape"
    UP = "up"
    DOWN = "down"
    RIGHT = "right"
    LEFT = "left"
    HOME = "home"
    END = "end"
    INSERT = "insert"
    DELETE = "delete"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    BACKSPACE = "backspace"
    ENTER = "enter"
    TAB = "tab"


@dataclass(frozen=True)
class KeyEvent:
    key: Key
    ch: str = ""  # the character for CHAR, the letter for CTRL


@dataclass(frozen=True)
class ResizeEvent:
    pass


# ESC [ <letter> and ESC O <letter>
CSI_LETTERS = {
    ord("A"): Key.UP,
    ord("B"): Key.DOWN,
    ord("C"): Key.RIGHT,
    ord("D"): Key.LEFT,
    ord("H"): Key.HOME,
    ord("F"): Key.END,
}

# ESC [ <number> ~
CSI_TILDE = {
    1: Key.HOME,
    2: Key.INSERT,
    3: Key.DELETE,
    4: Key.END,
    5: Key.PAGE_UP,
    6: Key.PAGE_DOWN,
    7: Key.HOME,
    8: Key.END,
}

SINGLE_BYTES = {
    ord("\r"): Key.ENTER,
    ord("\n"): Key.ENTER,
    ord("\t"): Key.TAB,
    127: Key.BACKSPACE,
    8: Key.BACKSPACE,
}


def ctrl(letter: str) -> int:
    """Byte produced by holding Ctrl and pressing `letter`."""
    return ord(letter.upper()) & 0x1f


class Decoder:
    """
    Byte-by-byte key decoder.

    `read_byte` is a callable returning the next input byte as an int, or None
    when no byte is available right now. Bytes that were read but not used
    (lookahead that turned out not to belong to an escape sequence, or input
    that arrived while the terminal was answering a query) wait in `pending`
    and are decoded before anything new is read.
    """

    def __init__(self, read_byte):
        self.read_byte = read_byte
        self.pending = deque()

    def has_pending(self) -> bool:
        return bool(self.pending)

    def push(self, data):
        """Queue already-read input bytes behind any that are pending."""
        self.pending.extend(data)

    def _next(self):
        if self.pending:
            return self.pending.popleft()
        return self.read_byte()

    def read_key(self):
        """Decode one key. Returns a KeyEvent, or None if no complete key was available."""
        byte = self._next()
        if byte is None:
            return None
        if byte == ESC:
            return self._escape_sequence()
        return decode_byte(byte)

    def _escape_sequence(self):
        first = self._next()
        if first is None:
            return KeyEvent(Key.ESCAPE)
        if first == ord("O"):
            key = CSI_LETTERS.get(self._next())
            return KeyEvent(key) if key is not None else None
        if first != ord("["):
            # Escape followed by an unrelated key: keep that key for later
            self.pending.appendleft(first)
            return KeyEvent(Key.ESCAPE)

        params = bytearray()
        while len(params) < MAX_SEQUENCE:
            byte = self._next()
            if byte is None:
                # incomplete sequence
                return None
            if byte in CSI_FINAL:
                key = match_sequence(bytes(params), byte)
                return KeyEvent(key) if key is not None else None
            if byte not in CSI_PARAMETER:
                # cannot be part of a sequence: drop what was read, keep the byte
                self.pending.appendleft(byte)
                return None
            params.append(byte)
        return None


def decode_byte(byte: int) -> KeyEvent:
    """Decode a byte that is not part of an escape sequence."""
    key = SINGLE_BYTES.get(byte)
    if key is not None:
        return KeyEvent(key)
    if byte < 0x20:
        return KeyEvent(Key.CTRL, chr(byte | 0x40).lower())
    return KeyEvent(Key.CHAR, chr(byte))


def match_sequence(params: bytes, final: int):
    """Return the Key for the complete sequence ESC [ `params` `final`, or None if it is not one we use."""
    if not params:
        return CSI_LETTERS.get(final)
    if final == ord("~") and params.isdigit():
        return CSI_TILDE.get(int(params))
    return None
