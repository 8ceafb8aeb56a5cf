"""
svi/ui/screen.py

Screen painting for the svi text editor. Only reads editor state: the text
area shows rows cursor.top .. cursor.top + height - 2 and the last line is
the status line. Edits repaint just the rows they touched, single-line
scrolls use the terminal's scroll region, and everything else goes through
a full redraw.
"""
from wcwidth import wcswidth, wcwidth

from svi.cursor import Motion, text_rows
from svi.ui import Mode

FILLER = "~"         # rows past the end of the buffer
UNPRINTABLE = "?"    # anything not exactly one cell wide
INSERT_INDICATOR = "-- INSERT --"


def display_text(text: str, tab_width: int, width: int) -> str:
    """
    Convert row text into what goes on screen: tabs become `tab_width`
    spaces, characters that do not take exactly one cell become '?', and the
    result is clipped to `width` cells.
    """
    if wcswidth(text) == len(text):
        return text[:width]
    cells = []
    used = 0
    for ch in text:
        if ch == "\t":
            cell = " " * tab_width
        elif wcwidth(ch) == 1:
            cell = ch
        else:
            cell = UNPRINTABLE
        if used + len(cell) > width:
            cells.append(cell[:width - used])
            break
        cells.append(cell)
        used += len(cell)
    return "".join(cells)


def screen_line(context, y: int):
    """Screen line showing logical row y, or None if it is scrolled out of view."""
    line = y - context.cursor.top
    if 0 <= line < text_rows(context.height):
        return line
    return None


def _paint_line(context, line: int, y: int):
    term = context.term
    term.move(0, line)
    term.clear_line()
    if y < len(context.buffer):
        term.write(display_text(context.buffer.row_text(y), context.config.tab_width, context.width))
    else:
        term.write(FILLER)


def draw_row(context, y: int):
    """Repaint logical row y if it is visible."""
    line = screen_line(context, y)
    if line is not None:
        _paint_line(context, line, y)


def draw_rows_from(context, y: int):
    """Repaint row y and everything below it in the window."""
    top = context.cursor.top
    for line in range(max(0, y - top), text_rows(context.height)):
        _paint_line(context, line, top + line)


def redraw(context):
    """Clear the screen and paint the whole window and the status line."""
    term = context.term
    term.clear_screen()
    if term.can_scroll:
        term.set_scroll_region(0, text_rows(context.height) - 1)
    draw_rows_from(context, context.cursor.top)
    draw_status(context)


def scroll(context, motion: Motion):
    """Scroll the window one line and paint the row that came into view."""
    term = context.term
    if not term.can_scroll:
        redraw(context)
        return
    bottom = text_rows(context.height) - 1
    top = context.cursor.top
    if motion is Motion.SCROLL_DOWN:
        term.move(0, bottom)
        term.scroll_forward()
        _paint_line(context, bottom, top + bottom)
    else:
        term.move(0, 0)
        term.scroll_reverse()
        _paint_line(context, 0, top)


def status_text(context) -> str:
    if context.mode is Mode.COMMAND:
        return ":" + context.command.text
    if context.status_message:
        return context.status_message
    if context.mode is Mode.INSERT:
        return INSERT_INDICATOR
    return ""


def draw_status(context):
    term = context.term
    term.move(0, context.height - 1)
    term.clear_line()
    # stay off the bottom-right cell so the terminal never scrolls
    term.write(display_text(status_text(context), 1, context.width - 1))


def place_cursor(context):
    cursor = context.cursor
    if context.mode is Mode.COMMAND:
        context.term.move(min(cursor.tx, context.width - 1), context.height - 1)
    else:
        context.term.move(min(cursor.tx, context.width - 1), cursor.ty)


def refresh(context):
    """Finish an event: repaint the status line, put the cursor back, send it all out."""
    draw_status(context)
    place_cursor(context)
    context.term.flush()
