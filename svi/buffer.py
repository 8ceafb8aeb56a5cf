"""
Buffer module for the svi text editor.

Defines the Row and Buffer classes that store the text being edited.
A Row is a growable line of characters that keeps count of the tabs it holds,
and a Buffer is the ordered collection of row slots making up the document.
A slot may be absent (None), meaning a blank line that was never typed into.
"""

TAB = 9
ENCODING = "latin-1"  # one character per byte, both on disk and in memory

# Row growth (characters)
INITIAL_ROW_SIZE = 128
ROW_SIZE_INCREMENT = 64

# Buffer growth (row slots)
INITIAL_BUFFER_ROWS = 32
BUF_SIZE_INCREMENT = 16
FILE_BUF_SIZE_INCREMENT = 128


def roundupto(x: int, multiple: int) -> int:
    """Round x up to the next multiple of `multiple`."""
    return ((x + multiple - 1) // multiple) * multiple


class Row:
    """A single line of text stored in a fixed-increment growable byte array."""

    def __init__(self, text: str = "", capacity: int = INITIAL_ROW_SIZE):
        raw = text.encode(ENCODING)
        while len(raw) >= capacity:
            capacity += ROW_SIZE_INCREMENT
        self.data = bytearray(capacity)
        self.data[:len(raw)] = raw
        self.length = len(raw)
        self.tab_count = raw.count(TAB)

    @property
    def capacity(self) -> int:
        return len(self.data)

    @property
    def text(self) -> str:
        return self.data[:self.length].decode(ENCODING)

    def __len__(self):
        return self.length

    def __str__(self):
        return self.text

    def __repr__(self):
        return f"Row({self.text!r}, length={self.length}, capacity={self.capacity}, tabs={self.tab_count})"

    def __getitem__(self, index: int) -> str:
        if not 0 <= index < self.length:
            raise IndexError("row index out of range")
        return chr(self.data[index])

    def _grow(self, needed: int):
        # keep length < capacity: the last slot stays free
        while needed >= self.capacity:
            self.data.extend(bytes(ROW_SIZE_INCREMENT))

    def insert_char(self, ch: str, index: int):
        """Insert `ch` at `index` (clamped to the row length), shifting the rest right."""
        byte = ch.encode(ENCODING)[0]
        self._grow(self.length + 1)
        if index > self.length:
            index = self.length
        if index < self.length:
            self.data[index + 1:self.length + 1] = self.data[index:self.length]
        self.data[index] = byte
        self.length += 1
        if byte == TAB:
            self.tab_count += 1

    def remove_char(self, index: int):
        """
        Remove the character at `index` (clamped to the last character), shifting the rest left.
        Returns the removed character, or None if the row is empty.
        """
        if self.length == 0:
            return None
        if index >= self.length:
            index = self.length - 1
        removed = self.data[index]
        self.data[index:self.length - 1] = self.data[index + 1:self.length]
        self.length -= 1
        self.data[self.length] = 0
        if removed == TAB:
            self.tab_count -= 1
        return chr(removed)

    def split(self, x: int) -> "Row":
        """Truncate this row to its first x characters and return the rest as a new row."""
        suffix = Row(self.data[x:self.length].decode(ENCODING))
        self.data[x:self.length] = bytes(self.length - x)
        self.length = x
        self.tab_count -= suffix.tab_count
        return suffix

    def extend(self, other: "Row"):
        """Append the content of `other` to the end of this row."""
        self._grow(self.length + other.length)
        self.data[self.length:self.length + other.length] = other.data[:other.length]
        self.length += other.length
        self.tab_count += other.tab_count

    def visual_length(self, tab_width: int) -> int:
        return self.length - self.tab_count + self.tab_count * tab_width

    def visual_column(self, x: int, tab_width: int) -> int:
        """Screen width of the first x characters."""
        x = min(x, self.length)
        return x + self.data.count(TAB, 0, x) * (tab_width - 1)


class Buffer:
    """Represents the document: a list of row slots with a logical length and a capacity."""

    def __init__(self, capacity: int = INITIAL_BUFFER_ROWS, increment: int = BUF_SIZE_INCREMENT):
        self.slots = [None] * capacity
        self.increment = increment
        # A fresh buffer holds one blank line that has never been typed into
        self.logical_length = 1 if capacity else 0

    @classmethod
    def from_lines(cls, lines) -> "Buffer":
        """Create a buffer holding `lines`, sized for a document loaded from disk."""
        lines = list(lines)
        buf = cls(roundupto(max(len(lines), 1), FILE_BUF_SIZE_INCREMENT), FILE_BUF_SIZE_INCREMENT)
        for y, line in enumerate(lines):
            buf.slots[y] = Row(line)
        buf.logical_length = max(len(lines), 1)
        return buf

    @classmethod
    def from_file(cls, path: str) -> "Buffer":
        """Load `path` line by line; the trailing newline of each line is stripped."""
        with open(path, "r", encoding=ENCODING, newline="") as f:
            content = f.read()
        lines = content.split("\n")
        if content.endswith("\n"):
            lines.pop()
        if not content:
            lines = []
        return cls.from_lines(lines)

    @property
    def capacity(self) -> int:
        return len(self.slots)

    def __len__(self):
        return self.logical_length

    def row(self, y: int):
        """Return the Row at index y, or None for an absent slot or an index past the end."""
        if 0 <= y < self.logical_length:
            return self.slots[y]
        return None

    def row_length(self, y: int) -> int:
        row = self.row(y)
        return row.length if row is not None else 0

    def row_visual_length(self, y: int, tab_width: int) -> int:
        row = self.row(y)
        return row.visual_length(tab_width) if row is not None else 0

    def row_text(self, y: int) -> str:
        row = self.row(y)
        return row.text if row is not None else ""

    def lines(self):
        """Yield the text of every logical row, absent slots as empty strings."""
        for y in range(self.logical_length):
            yield self.row_text(y)

    def _ensure_capacity(self, size: int):
        while size > self.capacity:
            self.resize(self.capacity + self.increment)

    def materialize(self, y: int) -> Row:
        """Return the Row at y, creating it (and growing the buffer) if the slot is absent."""
        if y >= self.logical_length:
            self._ensure_capacity(y + 1)
            self.logical_length = y + 1
        if self.slots[y] is None:
            self.slots[y] = Row()
        return self.slots[y]

    def insert_char(self, y: int, x: int, ch: str):
        self.materialize(y).insert_char(ch, x)

    def remove_char(self, y: int, x: int):
        """Remove the character at (x, y); returns it, or None if there was nothing to remove."""
        row = self.row(y)
        if row is None:
            return None
        return row.remove_char(x)

    def split_row(self, y: int, x: int):
        """Break row y at column x, moving the suffix to a new row inserted below."""
        row = self.row(y)
        if row is not None and x < row.length:
            suffix = row.split(x)
            self.shift_rows_down(y + 1)
            self.slots[y + 1] = suffix
        else:
            self.shift_rows_down(y + 1)

    def merge_row_up(self, y: int, tab_width: int):
        """
        Join row y onto the end of row y-1 and close the gap.
        Returns the (logical, visual) length row y-1 had before the merge,
        which is where the cursor belongs afterwards.
        """
        if not 0 < y < self.logical_length:
            raise IndexError("cannot merge row %d" % y)
        above = self.slots[y - 1]
        x = above.length if above is not None else 0
        tx = above.visual_length(tab_width) if above is not None else 0
        row = self.slots[y]
        if row is not None:
            self.materialize(y - 1).extend(row)
        self.slots[y] = None
        self.shift_rows_up(y + 1)
        return x, tx

    def shift_rows_down(self, start: int):
        """Move the rows from `start` onward one slot down, leaving slot `start` absent."""
        self._ensure_capacity(max(self.logical_length, start) + 1)
        if start < self.logical_length:
            self.slots[start + 1:self.logical_length + 1] = self.slots[start:self.logical_length]
            self.slots[start] = None
            self.logical_length += 1
        else:
            self.logical_length = start + 1

    def shift_rows_up(self, start: int):
        """Move the rows from `start` onward one slot up over slot start-1, leaving the last slot absent."""
        if not 0 < start <= self.logical_length:
            raise IndexError("cannot shift rows up from %d" % start)
        self.slots[start - 1:self.logical_length - 1] = self.slots[start:self.logical_length]
        self.slots[self.logical_length - 1] = None
        self.logical_length -= 1

    def resize(self, size: int):
        """Grow or shrink the number of allocated slots; shrinking drops the rows past the end."""
        if size == self.capacity:
            return
        if size < self.capacity:
            del self.slots[size:]
            if self.logical_length > size:
                last = size
                while last > 0 and self.slots[last - 1] is None:
                    last -= 1
                self.logical_length = last
        else:
            self.slots.extend([None] * (size - self.capacity))

    def save_to_file(self, path: str, overwrite: bool = False):
        """
        Write every logical row to `path`, one newline-terminated line each.
        Unless `overwrite` is set the file must not exist yet (FileExistsError).
        Returns (lines, bytes) written. OSError propagates to the caller.
        """
        content = "".join(line + "\n" for line in self.lines())
        with open(path, "w" if overwrite else "x", encoding=ENCODING, newline="") as f:
            f.write(content)
        return self.logical_length, len(content)
