"""
Terminal session for the svi text editor.

A Terminal owns the tty while the editor runs: it switches it to raw,
non-blocking mode, turns window size changes into events, reads key events
through the decoder, and buffers screen output built from terminfo
capabilities. Everything open() changes is undone by close(), which is safe
to call more than once and is called on the way out of every exit path when
the session is used as a context manager.

Resize notifications use a self-pipe: the SIGWINCH handler does nothing, and
signal.set_wakeup_fd writes the signal number into a pipe that is watched by
the same selector as stdin. A resize arriving at any moment, before or during
the wait, leaves the pipe readable and cannot be lost.
"""
import curses
import fcntl
import os
import re
import select
import selectors
import signal
import termios
import time

from svi import logger
from svi.ui.decoder import Decoder, ResizeEvent

CURSOR_REPORT = re.compile(rb"\x1b\[(\d+);(\d+)R")
CURSOR_REPORT_MAX = 64

# Used when terminfo has no entry for the terminal
ANSI_CAPABILITIES = {
    "clear": b"\x1b[H\x1b[2J",
    "el": b"\x1b[K",
    "cup": b"\x1b[%i%p1%d;%p2%dH",
    "csr": b"\x1b[%i%p1%d;%p2%dr",
    "ri": b"\x1bM",
    "ind": b"\n",
    "sc": b"\x1b7",
    "rc": b"\x1b8",
}


class TerminalError(Exception):
    """Unrecoverable terminal failure; the editor restores the tty and exits."""

    def __init__(self, operation: str, strerror: str = None):
        self.operation = operation
        self.strerror = strerror
        super().__init__(f"{operation}: {strerror}" if strerror else operation)


def parse_cursor_report(data: bytes):
    """Parse an `ESC [ rows ; cols R` reply. Returns (columns, lines) or None."""
    match = CURSOR_REPORT.search(data)
    if not match:
        return None
    lines, columns = int(match.group(1)), int(match.group(2))
    if not lines or not columns:
        return None
    return columns, lines


def _on_winch(signum, frame):
    # the wakeup fd carries the notification
    pass


class Terminal:
    """A raw-mode tty session with a merged input/resize wait."""

    def __init__(self, config, stdin_fd: int = 0, stdout_fd: int = 1):
        self.config = config
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self.decoder = Decoder(self.read_byte)

        self._caps = {}
        self._terminfo = False
        self._out = bytearray()

        # state to restore on close; None means "not changed"
        self._old_attrs = None
        self._old_flags = None
        self._old_wakeup_fd = None
        self._old_winch = None
        self._wakeup_r = None
        self._wakeup_w = None
        self._selector = None
        self._screen_cleared = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    ##########################################
    # SETUP / TEARDOWN
    ##########################################
    def open(self):
        try:
            self._open()
        except Exception:
            self.close()
            raise

    def _open(self):
        if not (os.isatty(self.stdin_fd) and os.isatty(self.stdout_fd)):
            raise TerminalError("stdin and stdout must be a terminal")
        self._load_capabilities()

        try:
            attrs = termios.tcgetattr(self.stdin_fd)
        except termios.error as e:
            raise TerminalError("tcgetattr", e.args[-1])
        self._old_attrs = [list(a) if isinstance(a, list) else a for a in attrs]

        # raw mode: no line editing, no echo, no signals from control keys
        attrs[0] &= ~(termios.IGNBRK | termios.BRKINT | termios.PARMRK | termios.ISTRIP
                      | termios.INLCR | termios.IGNCR | termios.ICRNL | termios.IXON)
        attrs[1] &= ~termios.OPOST
        attrs[3] &= ~(termios.ECHO | termios.ECHONL | termios.ICANON | termios.ISIG | termios.IEXTEN)
        attrs[2] &= ~(termios.CSIZE | termios.PARENB)
        attrs[2] |= termios.CS8
        attrs[6][termios.VMIN] = 1
        attrs[6][termios.VTIME] = 0
        saved = self._old_attrs
        self._old_attrs = None
        try:
            termios.tcsetattr(self.stdin_fd, termios.TCSANOW, attrs)
        except termios.error as e:
            raise TerminalError("tcsetattr", e.args[-1])
        self._old_attrs = saved

        try:
            flags = fcntl.fcntl(self.stdin_fd, fcntl.F_GETFL)
            fcntl.fcntl(self.stdin_fd, fcntl.F_SETFL, flags | os.O_NONBLOCK)
        except OSError as e:
            raise TerminalError("fcntl", e.strerror)
        self._old_flags = flags

        try:
            self._wakeup_r, self._wakeup_w = os.pipe()
            os.set_blocking(self._wakeup_r, False)
            os.set_blocking(self._wakeup_w, False)
            self._old_wakeup_fd = signal.set_wakeup_fd(self._wakeup_w)
            self._old_winch = signal.signal(signal.SIGWINCH, _on_winch)
        except (OSError, ValueError) as e:
            raise TerminalError("sigaction", getattr(e, "strerror", None) or str(e))

        self._selector = selectors.DefaultSelector()
        self._selector.register(self.stdin_fd, selectors.EVENT_READ, "input")
        self._selector.register(self._wakeup_r, selectors.EVENT_READ, "resize")

        self.clear_screen()
        self.flush()
        self._screen_cleared = True
        logger.log("terminal: raw mode on")

    def close(self):
        """Undo exactly what open() did. Safe to call repeatedly and from error paths."""
        failure = None
        if self._screen_cleared:
            self._screen_cleared = False
            try:
                if "csr" in self._caps:
                    height = os.get_terminal_size(self.stdout_fd).lines
                    self.set_scroll_region(0, height - 1)
                self.clear_screen()
                self.flush()
            except (OSError, TerminalError) as e:
                failure = failure or TerminalError("write", getattr(e, "strerror", None) or str(e))
        if self._selector is not None:
            selector, self._selector = self._selector, None
            selector.close()
        if self._old_winch is not None:
            old, self._old_winch = self._old_winch, None
            signal.signal(signal.SIGWINCH, old)
        if self._old_wakeup_fd is not None:
            old, self._old_wakeup_fd = self._old_wakeup_fd, None
            signal.set_wakeup_fd(old)
        for attr in ("_wakeup_r", "_wakeup_w"):
            fd = getattr(self, attr)
            if fd is not None:
                setattr(self, attr, None)
                os.close(fd)
        if self._old_flags is not None:
            flags, self._old_flags = self._old_flags, None
            try:
                fcntl.fcntl(self.stdin_fd, fcntl.F_SETFL, flags)
            except OSError as e:
                failure = failure or TerminalError("fcntl", e.strerror)
        if self._old_attrs is not None:
            attrs, self._old_attrs = self._old_attrs, None
            try:
                termios.tcsetattr(self.stdin_fd, termios.TCSANOW, attrs)
            except termios.error as e:
                failure = failure or TerminalError("tcsetattr", e.args[-1])
            logger.log("terminal: restored")
        if failure is not None:
            raise failure

    def _load_capabilities(self):
        try:
            curses.setupterm(fd=self.stdout_fd)
        except curses.error as e:
            logger.log(f"terminal: no terminfo entry ({e}), using ANSI sequences")
            self._caps = dict(ANSI_CAPABILITIES)
            self._terminfo = False
            return
        self._terminfo = True
        self._caps = {}
        for name in ANSI_CAPABILITIES:
            cap = curses.tigetstr(name)
            if cap:
                self._caps[name] = cap
        for name in ("clear", "el", "cup"):
            # needed for any drawing at all
            if name not in self._caps:
                self._terminfo = False
                self._caps = dict(ANSI_CAPABILITIES)
                break
        self._caps.setdefault("ind", b"\n")

    ##########################################
    # INPUT
    ##########################################
    def read_byte(self):
        """Read one byte without blocking. Returns None if nothing is pending."""
        try:
            data = os.read(self.stdin_fd, 1)
        except BlockingIOError:
            return None
        except OSError as e:
            raise TerminalError("read", e.strerror)
        if not data:
            raise TerminalError("read", "end of input")
        return data[0]

    def _drain_wakeup(self) -> bool:
        """Empty the wakeup pipe; True if a SIGWINCH was among the signals."""
        resized = False
        while True:
            try:
                data = os.read(self._wakeup_r, 64)
            except BlockingIOError:
                break
            if not data:
                break
            if signal.SIGWINCH in data:
                resized = True
        return resized

    def wait_event(self):
        """Block until a key or a resize arrives and return it as an event."""
        while True:
            if self.decoder.has_pending():
                event = self.decoder.read_key()
                if event is not None:
                    return event
                continue
            ready = {key.data for key, _ in self._selector.select()}
            # a resize is reported first; a key typed at the same time stays queued on stdin
            if "resize" in ready and self._drain_wakeup():
                return ResizeEvent()
            if "input" in ready:
                event = self.decoder.read_key()
                if event is not None:
                    return event

    ##########################################
    # SIZE
    ##########################################
    def size(self):
        """Return (columns, lines) of the terminal."""
        try:
            sz = os.get_terminal_size(self.stdout_fd)
            if sz.columns and sz.lines:
                return sz.columns, sz.lines
        except OSError:
            pass
        reported = self._query_cursor_report()
        if reported is not None:
            return reported
        logger.log("terminal: size query timed out, assuming "
                   f"{self.config.fallback_columns}x{self.config.fallback_lines}")
        return self.config.fallback_columns, self.config.fallback_lines

    def _query_cursor_report(self):
        """Move the cursor to the far corner and ask the terminal where it ended up."""
        self._out += self._caps.get("sc", b"")
        self._out += b"\x1b[999;999H\x1b[6n"
        self._out += self._caps.get("rc", b"")
        self.flush()

        # keys typed while waiting are handed to the decoder, not lost
        reply = bytearray()
        deadline = time.monotonic() + self.config.size_query_timeout
        while True:
            match = CURSOR_REPORT.search(reply)
            if match:
                break
            remaining = deadline - time.monotonic()
            if len(reply) >= CURSOR_REPORT_MAX or remaining <= 0:
                self.decoder.push(reply)
                return None
            readable, _, _ = select.select([self.stdin_fd], [], [], remaining)
            if not readable:
                self.decoder.push(reply)
                return None
            byte = self.read_byte()
            if byte is not None:
                reply.append(byte)
        self.decoder.push(reply[:match.start()] + reply[match.end():])
        return parse_cursor_report(match.group(0))

    ##########################################
    # OUTPUT
    ##########################################
    def _param(self, name: str, *args) -> bytes:
        cap = self._caps[name]
        if self._terminfo:
            return curses.tparm(cap, *args)
        # ANSI templates take 1-based row;column
        if name == "cup":
            return b"\x1b[%d;%dH" % (args[0] + 1, args[1] + 1)
        return b"\x1b[%d;%dr" % (args[0] + 1, args[1] + 1)

    @property
    def can_scroll(self) -> bool:
        return "csr" in self._caps and "ri" in self._caps

    def write(self, text: str):
        self._out += text.encode("utf-8", "replace")

    def move(self, x: int, y: int):
        if x < 0 or y < 0:
            return
        self._out += self._param("cup", y, x)

    def clear_line(self):
        self._out += self._caps["el"]

    def clear_screen(self):
        self._out += self._caps["clear"]

    def set_scroll_region(self, top: int, bottom: int):
        self._out += self._param("csr", top, bottom)

    def scroll_forward(self):
        """Scroll the region up one line; the cursor must be on its bottom line."""
        self._out += self._caps["ind"]

    def scroll_reverse(self):
        """Scroll the region down one line; the cursor must be on its top line."""
        self._out += self._caps["ri"]

    def flush(self):
        view = memoryview(bytes(self._out))
        self._out.clear()
        while view:
            try:
                written = os.write(self.stdout_fd, view)
            except BlockingIOError:
                # stdout may share stdin's non-blocking file description
                select.select([], [self.stdout_fd], [])
                continue
            except OSError as e:
                raise TerminalError("write", e.strerror)
            view = view[written:]
