"""
Display surfaces and key sources.

A surface is the physical character grid a Console renders into, and a key
source is where it reads raw key codes from. The core only relies on the
interfaces of Surface and KeySource; this module also provides an in-memory
implementation of each (for headless use and tests) and an implementation
of each backed by the Blessed library.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Optional

from blessed import Terminal

from .geometry import Point, Rect, scroll_cells

logger = logging.getLogger(__name__)

# First code of a two-code extended/function key
NULL_KEY = 0x00
EXTENDED_KEY = 0xE0

# Plain code substituted for input that can't be delivered as itself
PLACEHOLDER_KEY = ord('?')


def plain_code(ch: str) -> int:
    """Code for a typed character, never one of the extended key markers."""
    code = ord(ch)
    if code in (NULL_KEY, EXTENDED_KEY):
        return PLACEHOLDER_KEY
    return code


def printable(ch: str) -> str:
    """Character safe to send to a terminal in place of ch."""
    return ch if ch.isprintable() else '?'


class SurfaceError(OSError):
    """Raised when a surface cannot report its geometry."""


@dataclass
class SurfaceInfo:
    """Geometry and default attributes reported by a surface.

    Attributes:
        width: Number of columns in the grid
        height: Number of rows in the grid
        viewport: Currently visible part of the grid
        attributes: Attributes used for text that isn't styled otherwise
    """
    width: int
    height: int
    viewport: Rect
    attributes: Any


class Surface:
    """Interface of a character grid with a cursor.

    Coordinates are absolute grid coordinates. Attributes are opaque values
    that the surface understands, as reported by get_info().
    """

    def get_info(self) -> SurfaceInfo:
        """Report the current geometry; raises SurfaceError if unavailable."""
        raise NotImplementedError

    def write_char(self, x: int, y: int, ch: str, attributes):
        raise NotImplementedError

    def fill(self, rect: Rect, ch: str, attributes):
        raise NotImplementedError

    def scroll(self, rect: Rect, target: Point, fill_char: str, attributes):
        """Move the cells in rect so its origin lands on target.

        Vacated cells are filled with fill_char and attributes.
        """
        raise NotImplementedError

    def set_cursor(self, x: int, y: int):
        raise NotImplementedError

    def get_cursor(self) -> Point:
        raise NotImplementedError


class MemorySurface(Surface):
    """A surface that only exists in memory.

    Each cell holds a ``(char, attributes)`` tuple. Useful for running a
    Console without a terminal and for inspecting what was drawn.
    """

    def __init__(self, width=80, height=25, attributes=0x07, viewport=None):
        self.attributes = attributes
        self.viewport = viewport
        self.cursor = Point(0, 0)
        self.cells = []
        self._resize(width, height)

    def _resize(self, width, height):
        self.width = width
        self.height = height
        self.cells = [[(' ', self.attributes) for _ in range(width)] for _ in range(height)]

    def get_info(self) -> SurfaceInfo:
        if self.width <= 0 or self.height <= 0:
            raise SurfaceError(f"surface has no usable size ({self.width}x{self.height})")
        viewport = self.viewport or Rect(0, 0, self.width, self.height)
        return SurfaceInfo(self.width, self.height, viewport, self.attributes)

    def write_char(self, x, y, ch, attributes):
        if 0 <= x < self.width and 0 <= y < self.height:
            self.cells[y][x] = (ch, attributes)

    def fill(self, rect, ch, attributes):
        for y in range(max(rect.y, 0), min(rect.y + rect.h, self.height)):
            for x in range(max(rect.x, 0), min(rect.x + rect.w, self.width)):
                self.cells[y][x] = (ch, attributes)

    def scroll(self, rect, target, fill_char, attributes):
        scroll_cells(self.cells, rect, target, (fill_char, attributes))

    def set_cursor(self, x, y):
        self.cursor = Point(x, y)

    def get_cursor(self) -> Point:
        return Point(self.cursor.x, self.cursor.y)

    def get_char(self, x: int, y: int) -> str:
        """Character at an absolute position."""
        return self.cells[y][x][0]

    def row_text(self, y: int) -> str:
        """Characters of one row as a string."""
        return ''.join(ch for ch, _ in self.cells[y])

    @property
    def display(self):
        """All rows as strings, trailing blanks stripped."""
        return [self.row_text(y).rstrip() for y in range(self.height)]


class BlessedSurface(MemorySurface):
    """A surface drawn on a Blessed terminal.

    Keeps a shadow copy of the grid (the MemorySurface state) so that block
    scrolls, which terminals can't do on arbitrary rectangles, can be
    redrawn from it.

    Control characters are drawn as ``?`` so they can't act on the
    terminal; the shadow grid keeps them as written.

    Attributes:
        term: Blessed Terminal instance
    """

    def __init__(self, term: Optional[Terminal] = None, attributes=None):
        if term is None:
            term = Terminal()
        self.term = term
        super().__init__(
            width=0,
            height=0,
            attributes=attributes if attributes is not None else term.normal,
        )

    def get_info(self) -> SurfaceInfo:
        try:
            width, height = self.term.width, self.term.height
        except (OSError, ValueError) as exc:
            raise SurfaceError(f"terminal size unavailable: {exc}") from exc
        if not width or not height:
            raise SurfaceError(f"terminal has no usable size ({width}x{height})")
        if (width, height) != (self.width, self.height):
            logger.debug("Terminal grid is now %dx%d", width, height)
            self._resize(width, height)
        return super().get_info()

    def write_char(self, x, y, ch, attributes):
        if not (0 <= x < self.width and 0 <= y < self.height):
            return
        super().write_char(x, y, ch, attributes)
        print(self.term.move(y, x) + attributes + printable(ch), end='', flush=True)

    def fill(self, rect, ch, attributes):
        super().fill(rect, ch, attributes)
        left = max(rect.x, 0)
        right = min(rect.x + rect.w, self.width)
        if left >= right:
            return
        for y in range(max(rect.y, 0), min(rect.y + rect.h, self.height)):
            print(self.term.move(y, left) + attributes + printable(ch) * (right - left), end='')
        print('', end='', flush=True)

    def scroll(self, rect, target, fill_char, attributes):
        super().scroll(rect, target, fill_char, attributes)
        # Redraw everything the source or the destination touched
        left = max(min(rect.x, target.x), 0)
        right = min(max(rect.x, target.x) + rect.w, self.width)
        top = max(min(rect.y, target.y), 0)
        bottom = min(max(rect.y, target.y) + rect.h, self.height)
        for y in range(top, bottom):
            self._draw_span(y, left, right)
        print('', end='', flush=True)

    def set_cursor(self, x, y):
        super().set_cursor(x, y)
        print(self.term.move(y, x), end='', flush=True)

    def _draw_span(self, y, left, right):
        """Redraw part of one row from the shadow grid."""
        out = [self.term.move(y, left)]
        current = None
        for ch, attributes in self.cells[y][left:right]:
            if attributes != current:
                out.append(attributes)
                current = attributes
            out.append(printable(ch))
        print(''.join(out), end='')


class KeySource:
    """Interface of a non-blocking source of raw key codes.

    Plain keys arrive as a single code. Extended/function keys arrive as two
    codes: EXTENDED_KEY (or NULL_KEY) followed by the key's own code.
    """

    def has_key(self) -> bool:
        raise NotImplementedError

    def read_code(self) -> int:
        """Consume the next code.

        Only call this after has_key() returned True, or to fetch the second
        code of an extended key.
        """
        raise NotImplementedError


class QueueKeySource(KeySource):
    """A key source fed by the program itself."""

    def __init__(self):
        self.pending = deque()

    def feed(self, *codes: int):
        self.pending.extend(codes)

    def feed_text(self, text: str):
        self.pending.extend(plain_code(ch) for ch in text)

    def feed_function(self, *codes: int):
        for code in codes:
            self.pending.extend((EXTENDED_KEY, code))

    def has_key(self):
        return bool(self.pending)

    def read_code(self):
        return self.pending.popleft()


class BlessedKeySource(KeySource):
    """A key source reading keystrokes from a Blessed terminal.

    The terminal should be in cbreak mode. Keystrokes are translated into
    raw codes: editing keys become their control codes, any other sequence
    becomes an extended key carrying the Blessed key code.
    """

    PLAIN_SEQUENCES = {
        'KEY_ENTER': 13,
        'KEY_BACKSPACE': 8,
        'KEY_TAB': 9,
        'KEY_ESCAPE': 27,
    }

    def __init__(self, term: Terminal):
        self.term = term
        self.pending = deque()

    def has_key(self):
        if not self.pending:
            self._translate(self.term.inkey(timeout=0))
        return bool(self.pending)

    def read_code(self):
        while not self.pending:
            self._translate(self.term.inkey())
        return self.pending.popleft()

    def _translate(self, key):
        """Queue the raw codes for one Blessed Keystroke."""
        if not key:
            return
        if key.is_sequence:
            code = self.PLAIN_SEQUENCES.get(key.name)
            if code is not None:
                self.pending.append(code)
            else:
                self.pending.extend((EXTENDED_KEY, key.code))
            return
        self.pending.extend(plain_code(ch) for ch in str(key))
