"""
Main entry point and editor context for the svi text editor.
"""
import sys

from svi import logger
from svi.buffer import Buffer, Row
from svi.config import load_config
from svi.cursor import Cursor
from svi.terminal import Terminal, TerminalError
from svi.ui import Mode, screen
from svi.ui import input as ui_input


class EditorContext:
    """
    Holds the state of the editor: the buffer, the cursor, the mode, the
    command being typed and the file metadata. Only the input handlers
    change it; the screen module just reads it.
    """
    def __init__(self, term, config, buf: Buffer, filename: str = None):
        self.term = term
        self.config = config
        self.buffer = buf
        self.cursor = Cursor()

        # Editor modes: normal, insert, command
        self.mode = Mode.NORMAL
        self.command = Row()
        self.status_message = ""

        # File metadata
        self.filename = filename
        self.modified = False
        self.written = False

        width, height = term.size()
        self.width = max(1, width)
        self.height = max(2, height)

        # Running flag
        self.exit_flag = False

    @property
    def tab_width(self) -> int:
        return self.config.tab_width

    def log_command(self, msg: str):
        logger.log(msg)

    def graceful_exit(self):
        """Stop the main loop; the terminal is restored by the session on the way out."""
        logger.log("Editor exited.")
        self.exit_flag = True


def load_buffer(filename: str = None) -> Buffer:
    """Read `filename` into a buffer; a missing file gives an empty buffer."""
    if filename is None:
        return Buffer()
    try:
        buf = Buffer.from_file(filename)
    except FileNotFoundError:
        logger.log(f"new file: {filename}")
        return Buffer()
    logger.log(f"opened {filename} ({len(buf)} lines)")
    return buf


def run_editor(context):
    """Paint the screen, then handle one event at a time until a quit command."""
    screen.redraw(context)
    screen.refresh(context)
    while not context.exit_flag:
        event = context.term.wait_event()
        ui_input.handle_event(context, event)
        screen.refresh(context)


def fatal(message: str) -> int:
    logger.log(f"fatal: {message}")
    print(f"svi: {message}", file=sys.stderr)
    return 1


def main(argv=None) -> int:
    argv = sys.argv if argv is None else argv
    filename = argv[1] if len(argv) > 1 else None

    config = load_config()
    logger.set_log_file(config.log_file)

    try:
        buf = load_buffer(filename)
    except OSError as e:
        return fatal(f"{filename}: {e.strerror or e}")
    except MemoryError:
        return fatal("out of memory")

    try:
        with Terminal(config) as term:
            context = EditorContext(term, config, buf, filename)
            run_editor(context)
    except TerminalError as e:
        return fatal(str(e))
    except MemoryError:
        return fatal("out of memory")
    return 0


def run():
    """
    Simple convenience function to start the editor and exit with its status.
    """
    sys.exit(main())


if __name__ == "__main__":
    run()
