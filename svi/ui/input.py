"""
Input handling for the svi text editor.

Maps each decoded event, given the current mode, to an action on the editor
context. The mapping is an explicit table per mode keyed by (key, character);
a character of ANY matches every character of that key kind. Actions are the
only code that changes the buffer, the cursor or the mode, and each one asks
the screen module to repaint what it changed.
"""
from svi import commands, cursor
from svi.buffer import Row
from svi.cursor import Motion
from svi.ui import Mode, screen
from svi.ui.decoder import Key, ResizeEvent

ANY = None


def handle_event(context, event):
    """Dispatch one event against the current mode."""
    if isinstance(event, ResizeEvent):
        handle_resize(context)
        return
    action = lookup(context.mode, event)
    if action is not None:
        action(context, event)


def lookup(mode: Mode, event):
    """Find the action bound to `event` in `mode`, or None if the key does nothing there."""
    table = KEYMAPS[mode]
    action = table.get((event.key, event.ch))
    if action is None:
        action = table.get((event.key, ANY))
    return action


def set_mode(context, mode: Mode):
    if mode is not context.mode:
        context.log_command(f"mode: {context.mode.value} -> {mode.value}")
    context.mode = mode


def _stops_before_end(context) -> bool:
    # Normal mode cannot rest past the last character; Insert mode can
    return context.mode is Mode.NORMAL


def _apply(context, motion: Motion):
    if motion in (Motion.SCROLL_UP, Motion.SCROLL_DOWN):
        screen.scroll(context, motion)
    elif motion is Motion.REDRAW:
        screen.redraw(context)


def mark_modified(context):
    context.modified = True


##########################################
# MOVEMENT (Normal and Insert)
##########################################
def move_left(context, event):
    _apply(context, cursor.move_left(context.cursor, context.buffer, context.tab_width))


def move_right(context, event):
    _apply(context, cursor.move_right(context.cursor, context.buffer, context.tab_width,
                                      _stops_before_end(context)))


def move_up(context, event):
    _apply(context, cursor.move_up(context.cursor, context.buffer, context.tab_width,
                                   _stops_before_end(context)))


def move_down(context, event):
    _apply(context, cursor.move_down(context.cursor, context.buffer, context.tab_width,
                                     context.height, _stops_before_end(context)))


def move_line_start(context, event):
    cursor.move_line_start(context.cursor)


def move_line_end(context, event):
    cursor.move_line_end(context.cursor, context.buffer, context.tab_width, _stops_before_end(context))


def page_up(context, event):
    _apply(context, cursor.page_up(context.cursor, context.buffer, context.tab_width,
                                   context.height, _stops_before_end(context)))


def page_down(context, event):
    _apply(context, cursor.page_down(context.cursor, context.buffer, context.tab_width,
                                     context.height, _stops_before_end(context)))


def redraw(context, event):
    screen.redraw(context)


##########################################
# EDITING
##########################################
def delete_at_cursor(context, event):
    """Remove the character under the cursor (x, Delete)."""
    c = context.cursor
    if c.x >= context.buffer.row_length(c.y):
        return
    context.buffer.remove_char(c.y, c.x)
    mark_modified(context)
    cursor.clamp_column(c, context.buffer, context.tab_width, _stops_before_end(context))
    screen.draw_row(context, c.y)


def insert_char(context, event):
    c = context.cursor
    ch = "\t" if event.key is Key.TAB else event.ch
    context.buffer.insert_char(c.y, c.x, ch)
    c.x += 1
    c.tx += cursor.char_width(ch, context.tab_width)
    mark_modified(context)
    screen.draw_row(context, c.y)


def insert_newline(context, event):
    """Break the current row at the cursor and move to the start of the new row."""
    c = context.cursor
    context.buffer.split_row(c.y, c.x)
    mark_modified(context)
    first = c.y
    if cursor.step_down(c, context.height):
        # on the bottom line: scroll one line, then fix the row that was cut
        screen.scroll(context, Motion.SCROLL_DOWN)
        screen.draw_row(context, first)
    else:
        screen.draw_rows_from(context, first)


def insert_backspace(context, event):
    """Remove the character before the cursor, or join the row onto the one above at column 0."""
    c = context.cursor
    if c.x > 0:
        removed = context.buffer.remove_char(c.y, c.x - 1)
        c.x -= 1
        c.tx -= cursor.char_width(removed, context.tab_width)
        mark_modified(context)
        screen.draw_row(context, c.y)
    elif c.y > 0:
        x, tx = context.buffer.merge_row_up(c.y, context.tab_width)
        moved = cursor.step_up(c)
        c.x, c.tx = x, tx
        mark_modified(context)
        if moved:
            screen.redraw(context)
        else:
            screen.draw_rows_from(context, c.y)


def leave_insert(context, event):
    set_mode(context, Mode.NORMAL)
    cursor.clamp_column(context.cursor, context.buffer, context.tab_width, True)


##########################################
# NORMAL MODE COMMANDS
##########################################
def clear_message(context, event):
    context.status_message = ""


def enter_insert(context, event):
    context.status_message = ""
    set_mode(context, Mode.INSERT)


def insert_at_line_start(context, event):
    cursor.move_line_start(context.cursor)
    enter_insert(context, event)


def append_after_cursor(context, event):
    cursor.move_right(context.cursor, context.buffer, context.tab_width, False)
    enter_insert(context, event)


def append_at_line_end(context, event):
    cursor.move_line_end(context.cursor, context.buffer, context.tab_width, False)
    enter_insert(context, event)


def open_line_below(context, event):
    c = context.cursor
    context.buffer.split_row(c.y, context.buffer.row_length(c.y))
    mark_modified(context)
    first = c.y
    if cursor.step_down(c, context.height):
        screen.scroll(context, Motion.SCROLL_DOWN)
    else:
        screen.draw_rows_from(context, first)
    enter_insert(context, event)


def open_line_above(context, event):
    c = context.cursor
    context.buffer.shift_rows_down(c.y)
    c.x = 0
    c.tx = 0
    mark_modified(context)
    screen.draw_rows_from(context, c.y)
    enter_insert(context, event)


def enter_command(context, event):
    """Start a ':' command; the cursor moves just past the prompt."""
    c = context.cursor
    c.stored_tx = c.tx
    c.tx = 1
    context.command = Row()
    context.status_message = ""
    set_mode(context, Mode.COMMAND)


##########################################
# COMMAND-LINE MODE
##########################################
def command_append(context, event):
    context.command.insert_char(event.ch, context.command.length)
    context.cursor.tx += 1


def command_backspace(context, event):
    if context.command.length:
        context.command.remove_char(context.command.length - 1)
        context.cursor.tx -= 1


def leave_command(context, event=None):
    set_mode(context, Mode.NORMAL)
    context.cursor.tx = context.cursor.stored_tx
    context.command = Row()


def command_execute(context, event):
    text = context.command.text
    leave_command(context)
    commands.process_command(context, text)


##########################################
# RESIZE
##########################################
def handle_resize(context):
    """Take the new terminal size, pull the cursor inside it and repaint everything."""
    width, height = context.term.size()
    context.width = max(1, width)
    context.height = max(2, height)
    context.log_command(f"resize: {context.width}x{context.height}")

    c = context.cursor
    in_command = context.mode is Mode.COMMAND
    if in_command:
        # the row column is parked in stored_tx while the prompt has the cursor
        c.tx, c.stored_tx = c.stored_tx, c.tx
    cursor.fit_to_screen(c, context.buffer, context.tab_width, context.width, context.height,
                         context.mode is not Mode.INSERT)
    if in_command:
        c.tx, c.stored_tx = c.stored_tx, c.tx
    screen.redraw(context)


##########################################
# KEY TABLES
##########################################
MOVEMENT_KEYS = {
    (Key.LEFT, ""): move_left,
    (Key.RIGHT, ""): move_right,
    (Key.UP, ""): move_up,
    (Key.DOWN, ""): move_down,
    (Key.HOME, ""): move_line_start,
    (Key.END, ""): move_line_end,
    (Key.PAGE_UP, ""): page_up,
    (Key.PAGE_DOWN, ""): page_down,
    (Key.DELETE, ""): delete_at_cursor,
}

NORMAL_KEYS = {
    **MOVEMENT_KEYS,
    (Key.ESCAPE, ""): clear_message,
    (Key.CHAR, "h"): move_left,
    (Key.CHAR, "j"): move_down,
    (Key.CHAR, "k"): move_up,
    (Key.CHAR, "l"): move_right,
    (Key.CHAR, " "): move_right,
    (Key.BACKSPACE, ""): move_left,
    (Key.CHAR, "0"): move_line_start,
    (Key.CHAR, "$"): move_line_end,
    (Key.CTRL, "b"): page_up,
    (Key.CTRL, "f"): page_down,
    (Key.CTRL, "l"): redraw,
    (Key.CHAR, "x"): delete_at_cursor,
    (Key.CHAR, "i"): enter_insert,
    (Key.INSERT, ""): enter_insert,
    (Key.CHAR, "I"): insert_at_line_start,
    (Key.CHAR, "a"): append_after_cursor,
    (Key.CHAR, "A"): append_at_line_end,
    (Key.CHAR, "o"): open_line_below,
    (Key.CHAR, "O"): open_line_above,
    (Key.CHAR, ":"): enter_command,
}

INSERT_KEYS = {
    **MOVEMENT_KEYS,
    (Key.ESCAPE, ""): leave_insert,
    (Key.CHAR, ANY): insert_char,
    (Key.TAB, ""): insert_char,
    (Key.ENTER, ""): insert_newline,
    (Key.BACKSPACE, ""): insert_backspace,
}

COMMAND_KEYS = {
    (Key.ESCAPE, ""): leave_command,
    (Key.ENTER, ""): command_execute,
    (Key.BACKSPACE, ""): command_backspace,
    (Key.CHAR, ANY): command_append,
}

KEYMAPS = {
    Mode.NORMAL: NORMAL_KEYS,
    Mode.INSERT: INSERT_KEYS,
    Mode.COMMAND: COMMAND_KEYS,
}
