"""
Logger module for the svi text editor.

Provides a simple file-based logger for debugging and error tracking. The
terminal belongs to the editor while it runs, so nothing is ever logged there.
"""
import datetime
import os

# Define the log file path
LOG_FILE_PATH = os.path.expanduser("~/svi/svi.log")


def set_log_file(path: str) -> None:
    """Send subsequent log lines to `path`."""
    global LOG_FILE_PATH
    LOG_FILE_PATH = path


def log(message: str) -> None:
    """Append a timestamped message to the log file."""
    try:
        directory = os.path.dirname(LOG_FILE_PATH)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(LOG_FILE_PATH, 'a', encoding='utf-8') as f:
            timestamp = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            f.write(f"[{timestamp}] {message}\n")
    except OSError:
        # If logging fails (e.g., file not writable), carry on editing without it.
        pass
