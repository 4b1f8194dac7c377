"""VGA text-mode screen and the kernel terminal that draws on it."""

from __future__ import annotations

import enum
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass

from geckokern.printf import pprintf

VGA_TEXT_WIDTH = 80
VGA_TEXT_HEIGHT = 25
HISTORY_SIZE = 10
HISTORY_ENTRY_MAX = 511
TAB_WIDTH = 4
PRINTF_COLOR = 0x0F


class VgaColor(enum.IntEnum):
    BLACK = 0
    BLUE = 1
    GREEN = 2
    CYAN = 3
    RED = 4
    MAGENTA = 5
    BROWN = 6
    LIGHT_GREY = 7
    DARK_GREY = 8
    LIGHT_BLUE = 9
    LIGHT_GREEN = 10
    LIGHT_CYAN = 11
    LIGHT_RED = 12
    LIGHT_MAGENTA = 13
    LIGHT_BROWN = 14
    WHITE = 15
    LIGHT_YELLOW = 0xE
    YELLOW = 0x2C


class Key(enum.IntEnum):
    """Non-character keys understood by line input."""

    UP = 0x60
    DOWN = 0x61
    LEFT = 0x62
    RIGHT = 0x63


@dataclass(frozen=True)
class MouseEvent:
    x: int
    y: int
    scroll: int = 0
    buttons: int = 0
    event_type: int = 0  # 0 = move, 1 = button, 2 = scroll


@dataclass
class _MouseCursor:
    x: int = -1
    y: int = -1
    is_drawn: bool = False
    original_cell: int = 0


def vga_entry_color(fg: int, bg: int) -> int:
    """Attribute byte with ``fg`` in the low nibble and ``bg`` in the high one."""
    return (int(fg) | int(bg) << 4) & 0xFF


def vga_entry(c: str | int, color: int) -> int:
    """16-bit text cell: character in the low byte, attribute in the high byte."""
    code = ord(c) if isinstance(c, str) else int(c)
    return (code & 0xFF) | (int(color) & 0xFF) << 8


class Screen:
    """A text-mode frame buffer of ``width`` x ``height`` cells."""

    def __init__(self, width: int = VGA_TEXT_WIDTH, height: int = VGA_TEXT_HEIGHT) -> None:
        if width < 1 or height < 1:
            raise ValueError("screen must be at least one cell in each direction")
        self.width = width
        self.height = height
        self.cells = [0] * (width * height)
        self.cursor = (0, 0)
        self.clear(vga_entry_color(VgaColor.LIGHT_GREY, VgaColor.BLACK))

    def put(self, c: str | int, color: int, x: int, y: int) -> None:
        """Write one character with an attribute at column ``x`` of row ``y``."""
        self.cells[_offset(self, x, y)] = vga_entry(c, color)

    def clear(self, color: int) -> None:
        """Fill every cell with a blank in ``color``."""
        self.cells = [vga_entry(" ", color)] * (self.width * self.height)

    def text_row(self, y: int) -> str:
        """The characters of row ``y``."""
        if not 0 <= y < self.height:
            raise ValueError(f"row {y} is outside 0..{self.height - 1}")
        start = y * self.width
        return "".join(chr(cell & 0xFF) for cell in self.cells[start : start + self.width])


def _offset(screen: Screen, x: int, y: int) -> int:
    if not (0 <= x < screen.width and 0 <= y < screen.height):
        raise ValueError(f"cell ({x}, {y}) is outside the screen")
    return y * screen.width + x


class Terminal:
    """Scrolling text output, line input with history and a mouse pointer."""

    def __init__(self, screen: Screen | None = None) -> None:
        self.screen = screen if screen is not None else Screen()
        self.column = 0
        self.row = 0
        self.history: deque[str] = deque(maxlen=HISTORY_SIZE)
        self.mouse_cursor = _MouseCursor()

    def _move_cursor(self) -> None:
        self.screen.cursor = (self.column, self.row)

    def putchar(self, c: str, color: int) -> None:
        """Print one character, handling newline, tab, wrapping and scrolling."""
        if len(c) != 1:
            raise ValueError("putchar takes a single character")
        if c == "\0":
            return
        if c == "\n":
            self.column = 0
            self.row += 1
        elif c == "\t":
            for _ in range(TAB_WIDTH):
                self.putchar(" ", color)
        else:
            self.screen.put(c, color, self.column, self.row)
            self.column += 1

        if self.column == self.screen.width:
            self.column = 0
            self.row += 1
        if self.row == self.screen.height:
            self.scroll(color)
            self.column = 0
            self.row = self.screen.height - 1
        self._move_cursor()

    def write(self, data: str, size: int, color: int) -> None:
        """Print exactly the first ``size`` characters of ``data``."""
        if not 0 <= size <= len(data):
            raise ValueError(f"size {size} does not fit data of length {len(data)}")
        for ch in data[:size]:
            self.putchar(ch, color)

    def printc(self, data: str, color: int) -> None:
        """Print ``data`` up to its first NUL in ``color``."""
        for ch in data.split("\0", 1)[0]:
            self.putchar(ch, color)

    def print(self, data: str) -> None:
        """Print ``data`` in white."""
        self.printc(data, VgaColor.WHITE)

    def print_int(self, n: int) -> None:
        """Print an integer in decimal."""
        self.print(str(int(n)))

    def print_hex(self, n: int) -> None:
        """Print a 32-bit value as 0x followed by lowercase hex without leading zeros."""
        self.print("0x" + format(int(n) & 0xFFFFFFFF, "x"))

    def printf(self, fmt: str, *args) -> int:
        """Formatted print in bright white; returns the number of characters."""
        return pprintf(lambda ch: self.putchar(ch, PRINTF_COLOR), fmt, *args)

    def scroll(self, color: int) -> None:
        """Move every line up one row and blank the bottom row."""
        width = self.screen.width
        cells = self.screen.cells
        self.screen.cells = cells[width:] + [vga_entry(" ", color)] * width

    def scroll_up(self, lines: int) -> None:
        """Move content down ``lines`` rows, blanking the top row in green."""
        width = self.screen.width
        for _ in range(lines):
            cells = self.screen.cells
            self.screen.cells = [vga_entry(" ", VgaColor.GREEN)] * width + cells[:-width]

    def scroll_down(self, lines: int) -> None:
        """Move content up ``lines`` rows, blanking with green."""
        for _ in range(lines):
            self.scroll(VgaColor.GREEN)

    def clear(self, color: int) -> None:
        """Blank the screen and home the cursor."""
        self.screen.clear(color)
        self.column = 0
        self.row = 0
        self._move_cursor()

    def _erase_line(self, start_x: int, start_y: int, length: int, color: int) -> None:
        width = self.screen.width
        for k in range(length):
            pos = start_x + k
            y = start_y + pos // width
            if y < self.screen.height:
                self.screen.put(" ", color, pos % width, y)

    def input(
        self,
        keys: Iterable[str | Key],
        buffer_size: int = 512,
        color: int = VgaColor.LIGHT_GREY,
    ) -> str:
        """Read a line from ``keys``, echoing it, until Enter or the keys run out.

        Keys are single characters ('\\n' is Enter, '\\b' is Backspace) or
        :class:`Key` members; Up and Down walk the history. At most
        ``buffer_size - 1`` characters are kept. A non-empty line is added
        to the history.
        """
        if buffer_size < 1:
            raise ValueError("buffer size must be at least 1")
        limit = buffer_size - 1
        start_x, start_y = self.column, self.row
        buffer: list[str] = []
        browse = 0
        saved = ""

        for key in keys:
            if isinstance(key, Key):
                if key not in (Key.UP, Key.DOWN):
                    continue
                if key is Key.UP and browse == 0:
                    saved = "".join(buffer)
                if key is Key.UP and browse < len(self.history):
                    browse += 1
                elif key is Key.DOWN and browse > 0:
                    browse -= 1
                source = saved if browse == 0 else self.history[-browse]

                self._erase_line(start_x, start_y, len(buffer), color)
                self.column, self.row = start_x, start_y
                self._move_cursor()
                buffer = list(source[:limit])
                for ch in buffer:
                    self.putchar(ch, color)
                continue

            if len(key) != 1:
                raise ValueError("each key must be a single character or a Key")
            if key == "\n":
                break
            if key == "\b":
                if buffer:
                    if self.column > 0:
                        self.column -= 1
                    elif self.row > 0:
                        self.column = self.screen.width - 1
                        self.row -= 1
                    self.screen.put(" ", color, self.column, self.row)
                    buffer.pop()
                    self._move_cursor()
                continue
            if len(buffer) < limit and ord(key) >= 0x20:
                buffer.append(key)
                self.putchar(key, color)

        line = "".join(buffer)
        if line:
            self.history.append(line[:HISTORY_ENTRY_MAX])
        return line

    def _restore_mouse_cell(self) -> None:
        cur = self.mouse_cursor
        if cur.is_drawn:
            self.screen.cells[_offset(self.screen, cur.x, cur.y)] = cur.original_cell
            cur.is_drawn = False

    def draw_cursor(self, x: int, y: int, visible: bool) -> None:
        """Show the mouse pointer at (x, y) by swapping the cell's colours, or hide it."""
        if not visible:
            self._restore_mouse_cell()
            return
        index = _offset(self.screen, x, y)
        self._restore_mouse_cell()
        cur = self.mouse_cursor
        cell = self.screen.cells[index]
        cur.original_cell = cell
        cur.x, cur.y = x, y
        attr = (cell >> 8) & 0xFF
        swapped = ((attr & 0xF0) >> 4) | ((attr & 0x0F) << 4)
        self.screen.cells[index] = (cell & 0xFF) | swapped << 8
        cur.is_drawn = True

    def on_mouse_event(self, event: MouseEvent) -> None:
        """Move the pointer to the event's position."""
        self.draw_cursor(event.x, event.y, True)