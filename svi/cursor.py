"""
Cursor and viewport bookkeeping for the svi text editor.

The cursor keeps two column values: `x`, the index into the current row, and
`tx`, the on-screen column after tab expansion. It also keeps the logical row
`y` and the screen line `ty` that row is shown on. The last screen line is the
status line, so `ty` never goes past height - 2.

The movement functions return a Motion telling the caller what has to be
repainted; they never draw anything themselves.
"""
import enum
from dataclasses import dataclass


class Motion(enum.Enum):
    NONE = "none"                # nothing moved
    CURSOR = "cursor"            # cursor moved inside the visible window
    SCROLL_UP = "scroll_up"      # window moved up one line, top row is new
    SCROLL_DOWN = "scroll_down"  # window moved down one line, bottom row is new
    REDRAW = "redraw"            # window moved arbitrarily, repaint everything


@dataclass
class Cursor:
    x: int = 0
    tx: int = 0
    y: int = 0
    ty: int = 0
    stored_tx: int = 0

    @property
    def top(self) -> int:
        """Logical index of the row on the first screen line."""
        return self.y - self.ty


def text_rows(height: int) -> int:
    """Number of screen lines available for text (the last one is the status line)."""
    return max(1, height - 1)


def char_width(ch: str, tab_width: int) -> int:
    return tab_width if ch == "\t" else 1


def last_column(buf, y: int, stop_before_end: bool) -> int:
    """Right-most column the cursor may rest on in row y."""
    length = buf.row_length(y)
    if stop_before_end:
        return max(0, length - 1)
    return length


def column_for_visual(row, tx: int, tab_width: int):
    """
    Find the column in `row` matching the visual column `tx`.

    Scans from the start of the row and stops at the first position whose
    accumulated width reaches `tx`. Returns (x, achieved_tx); when the row is
    too short the cursor lands after its last character.
    """
    if row is None:
        return 0, 0
    width = 0
    for x in range(row.length):
        if width >= tx:
            return x, width
        width += char_width(row[x], tab_width)
    return row.length, width


def _settle_column(cursor: Cursor, buf, tab_width: int, stop_before_end: bool):
    """Recompute x from the previous tx after moving to another row."""
    row = buf.row(cursor.y)
    cursor.x, cursor.tx = column_for_visual(row, cursor.tx, tab_width)
    clamp_column(cursor, buf, tab_width, stop_before_end)


def clamp_column(cursor: Cursor, buf, tab_width: int, stop_before_end: bool):
    """Pull the cursor back inside row y if it sits past the allowed column."""
    limit = last_column(buf, cursor.y, stop_before_end)
    if cursor.x > limit:
        cursor.x = limit
        row = buf.row(cursor.y)
        cursor.tx = row.visual_column(limit, tab_width) if row is not None else 0


def move_left(cursor: Cursor, buf, tab_width: int) -> Motion:
    if cursor.x == 0:
        return Motion.NONE
    cursor.x -= 1
    cursor.tx -= char_width(buf.row(cursor.y)[cursor.x], tab_width)
    return Motion.CURSOR


def move_right(cursor: Cursor, buf, tab_width: int, stop_before_end: bool) -> Motion:
    if cursor.x >= last_column(buf, cursor.y, stop_before_end):
        return Motion.NONE
    cursor.tx += char_width(buf.row(cursor.y)[cursor.x], tab_width)
    cursor.x += 1
    return Motion.CURSOR


def move_line_start(cursor: Cursor) -> Motion:
    if cursor.x == 0:
        return Motion.NONE
    cursor.x = 0
    cursor.tx = 0
    return Motion.CURSOR


def move_line_end(cursor: Cursor, buf, tab_width: int, stop_before_end: bool) -> Motion:
    limit = last_column(buf, cursor.y, stop_before_end)
    if cursor.x == limit:
        return Motion.NONE
    cursor.x = limit
    row = buf.row(cursor.y)
    cursor.tx = row.visual_column(limit, tab_width) if row is not None else 0
    return Motion.CURSOR


def move_up(cursor: Cursor, buf, tab_width: int, stop_before_end: bool) -> Motion:
    if cursor.y == 0:
        return Motion.NONE
    cursor.y -= 1
    _settle_column(cursor, buf, tab_width, stop_before_end)
    if cursor.ty > 0:
        cursor.ty -= 1
        return Motion.CURSOR
    return Motion.SCROLL_UP


def move_down(cursor: Cursor, buf, tab_width: int, height: int, stop_before_end: bool) -> Motion:
    if cursor.y + 1 >= len(buf):
        return Motion.NONE
    cursor.y += 1
    _settle_column(cursor, buf, tab_width, stop_before_end)
    if cursor.ty < text_rows(height) - 1:
        cursor.ty += 1
        return Motion.CURSOR
    return Motion.SCROLL_DOWN


def page_down(cursor: Cursor, buf, tab_width: int, height: int, stop_before_end: bool) -> Motion:
    """Show the next page; the cursor lands on the first visible row."""
    new_y = min(cursor.top + text_rows(height), len(buf) - 1)
    if new_y == cursor.y and cursor.ty == 0:
        return Motion.NONE
    cursor.y = new_y
    cursor.ty = 0
    _settle_column(cursor, buf, tab_width, stop_before_end)
    return Motion.REDRAW


def page_up(cursor: Cursor, buf, tab_width: int, height: int, stop_before_end: bool) -> Motion:
    """Show the previous page; the cursor lands on the bottom visible row."""
    top = cursor.top
    if top == 0:
        if cursor.y == 0:
            return Motion.NONE
        cursor.y = 0
        cursor.ty = 0
    else:
        cursor.y = top - 1
        cursor.ty = min(cursor.y, text_rows(height) - 1)
    _settle_column(cursor, buf, tab_width, stop_before_end)
    return Motion.REDRAW


def step_down(cursor: Cursor, height: int) -> bool:
    """
    Follow the cursor onto the next row after an edit created it (line break,
    open line). Returns True if the visible window had to move.
    """
    cursor.y += 1
    cursor.x = 0
    cursor.tx = 0
    if cursor.ty < text_rows(height) - 1:
        cursor.ty += 1
        return False
    return True


def step_up(cursor: Cursor) -> bool:
    """Follow the cursor onto the previous row after a merge. Returns True if the window moved."""
    cursor.y -= 1
    if cursor.ty > 0:
        cursor.ty -= 1
        return False
    return True


def fit_to_screen(cursor: Cursor, buf, tab_width: int, width: int, height: int, stop_before_end: bool):
    """Bring the cursor back inside a (possibly smaller) screen after a resize."""
    if cursor.y >= len(buf):
        cursor.y = max(0, len(buf) - 1)
    top = max(0, cursor.y - (text_rows(height) - 1))
    cursor.ty = cursor.y - top
    clamp_column(cursor, buf, tab_width, stop_before_end)
    if cursor.tx > width - 1:
        row = buf.row(cursor.y)
        cursor.x, cursor.tx = column_for_visual(row, max(0, width - 1), tab_width)
        while cursor.x > 0 and cursor.tx > width - 1:
            move_left(cursor, buf, tab_width)
