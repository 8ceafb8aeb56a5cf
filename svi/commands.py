"""
Command parsing and execution for the svi text editor.

This module handles the text typed in command-line (':') mode. Three command
families are understood: q (quit), w (write, optionally to a named file) and
wq (write then quit). Each may end in '!' to skip the safety check that would
otherwise stop it. Anything else is ignored.
"""
from dataclasses import dataclass

from svi import logger

MSG_NOT_SAVED = "E37: No write since last change (add ! to override)"
MSG_FILE_EXISTS = "E13: File exists (add ! to override)"
MSG_NO_FILE_NAME = "E32: No file name"
MSG_CANT_WRITE = "E212: Can't open file for writing: {path}: {reason}"
MSG_WRITTEN = '"{path}" {lines}L, {size}B written'


@dataclass
class Command:
    name: str
    forced: bool = False
    argument: str = ""


def cmdstrcmp(cmd: str, name: str) -> bool:
    """
    True if `cmd` is the command `name`, alone or followed by '!' and/or a
    space-separated argument: for "wq" this accepts "wq", "wq!" and
    "wq file" but not "wqx".
    """
    if not cmd.startswith(name):
        return False
    rest = cmd[len(name):]
    if rest.startswith("!"):
        rest = rest[1:]
    return rest == "" or rest[0] == " "


def cmdchrcmp(cmd: str, ch: str) -> bool:
    """Single-letter form of cmdstrcmp: "q", "q!", "q x" match 'q'; "quit" and "qx" do not."""
    return len(ch) == 1 and cmdstrcmp(cmd, ch)


def parse_command(text: str):
    """Turn command-line text into a Command, or None if it is not a known command."""
    cmd = text.lstrip()
    if cmdstrcmp(cmd, "wq"):
        name = "wq"
    elif cmdchrcmp(cmd, "w"):
        name = "w"
    elif cmdchrcmp(cmd, "q"):
        name = "q"
    else:
        return None
    rest = cmd[len(name):]
    forced = rest.startswith("!")
    if forced:
        rest = rest[1:]
    return Command(name, forced, rest.strip())


def process_command(context, text: str):
    """Parse and execute a command-line (':' mode) command string."""
    command = parse_command(text)
    if command is None:
        logger.log(f"command ignored: {text!r}")
        return
    context.log_command(f":{text.strip()}")

    if command.name == "q":
        quit_editor(context, command.forced)
    elif command.name == "w":
        write_buffer(context, command.argument, command.forced)
    elif command.name == "wq":
        if write_buffer(context, command.argument, command.forced):
            quit_editor(context, command.forced)


def quit_editor(context, forced: bool = False) -> bool:
    """Leave the editor unless there are unsaved changes and `forced` is not set."""
    if context.modified and not forced:
        context.status_message = MSG_NOT_SAVED
        context.log_command("q: refused, buffer modified")
        return False
    context.graceful_exit()
    return True


def write_buffer(context, path: str = "", forced: bool = False) -> bool:
    """
    Write the buffer to `path`, or to the current file name when no path is given.
    An existing file is only replaced when forced, or when it is the current
    file and this session already wrote that file once. Writing somewhere
    else does not count.
    Reports the outcome on the status line and returns True on success.
    """
    path = path or context.filename
    if not path:
        context.status_message = MSG_NO_FILE_NAME
        return False

    overwrite = forced or (context.written and path == context.filename)
    try:
        lines, size = context.buffer.save_to_file(path, overwrite)
    except FileExistsError:
        context.status_message = MSG_FILE_EXISTS
        context.log_command(f"w: {path} exists, not overwritten")
        return False
    except OSError as e:
        reason = e.strerror or str(e)
        context.status_message = MSG_CANT_WRITE.format(path=path, reason=reason)
        context.log_command(f"w: error writing {path}: {reason}")
        return False

    if context.filename is None:
        context.filename = path
    if path == context.filename:
        # only a write to the current file unlocks a plain :w of it
        context.written = True
    context.modified = False
    context.status_message = MSG_WRITTEN.format(path=path, lines=lines, size=size)
    context.log_command(f"w: write {path} ({size} bytes)")
    return True
