"""In-memory stand-ins for the terminal used by the editor tests."""
from svi.buffer import Buffer
from svi.config import Config
from svi.ui.decoder import Decoder


class EventsExhausted(Exception):
    pass


def decode_all(data: bytes):
    """Decode a complete byte string into the list of key events it produces."""
    position = 0

    def read_byte():
        nonlocal position
        if position >= len(data):
            return None
        position += 1
        return data[position - 1]

    decoder = Decoder(read_byte)
    events = []
    while position < len(data) or decoder.has_pending():
        event = decoder.read_key()
        if event is not None:
            events.append(event)
    return events


class FakeTerminal:
    """
    Records drawing operations into a simple line-based screen model and
    replays a scripted list of events.
    """

    def __init__(self, events=(), width=80, height=24, can_scroll=True):
        self.events = list(events)
        self.width = width
        self.height = height
        self.can_scroll = can_scroll
        self.screen = {}
        self.cursor = (0, 0)
        self.region = (0, height - 1)
        self.clears = 0
        self.scrolls = []
        self.flushes = 0
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def feed(self, data: bytes):
        self.events.extend(decode_all(data))

    def size(self):
        return self.width, self.height

    def wait_event(self):
        if not self.events:
            raise EventsExhausted()
        return self.events.pop(0)

    def move(self, x, y):
        self.cursor = (x, y)

    def write(self, text):
        y = self.cursor[1]
        self.screen[y] = self.screen.get(y, "") + text
        self.cursor = (self.cursor[0] + len(text), y)

    def clear_line(self):
        self.screen[self.cursor[1]] = ""

    def clear_screen(self):
        self.screen = {}
        self.clears += 1

    def set_scroll_region(self, top, bottom):
        self.region = (top, bottom)

    def scroll_forward(self):
        top, bottom = self.region
        for line in range(top, bottom):
            self.screen[line] = self.screen.get(line + 1, "")
        self.screen[bottom] = ""
        self.scrolls.append("forward")

    def scroll_reverse(self):
        top, bottom = self.region
        for line in range(bottom, top, -1):
            self.screen[line] = self.screen.get(line - 1, "")
        self.screen[top] = ""
        self.scrolls.append("reverse")

    def flush(self):
        self.flushes += 1

    def line(self, y):
        return self.screen.get(y, "")


def make_context(data: bytes = b"", lines=None, filename=None, width=80, height=24,
                 tab_width=8, can_scroll=True):
    from svi.__main__ import EditorContext

    term = FakeTerminal(width=width, height=height, can_scroll=can_scroll)
    term.feed(data)
    buf = Buffer.from_lines(lines) if lines is not None else Buffer()
    return EditorContext(term, Config(tab_width=tab_width), buf, filename)


def drive(context, data: bytes = b""):
    """Run the editor loop over the queued events (plus `data`) until it quits or runs dry."""
    from svi.__main__ import run_editor

    context.term.feed(data)
    try:
        run_editor(context)
    except EventsExhausted:
        pass
    return context
