"""Terminal user interface of the svi text editor: key decoding, key handling and screen painting."""
import enum


class Mode(enum.Enum):
    """Editing modes; exactly one is active at a time."""
    NORMAL = "normal"
    INSERT = "insert"
    COMMAND = "command"
