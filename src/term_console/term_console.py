"""
Core window classes for console-based UIs.

This module provides a base Window that owns one rectangle of a shared
display surface, three specialised windows built on it (scrolling text
output, line input, raw character input), and the Console that owns the
surface, routes key input to the focused window and keeps the physical
cursor in step with it.
"""

import logging
import weakref
from collections import deque
from typing import List, Optional

from .geometry import Point, Rect, scroll_cells
from .surface import EXTENDED_KEY, NULL_KEY, KeySource, Surface, SurfaceError

logger = logging.getLogger(__name__)

# Returned by Window.get_char() for cells outside the window
NO_CHAR = '\0'

TAB_WIDTH = 4

# Plain key codes understood by the input windows
KEY_BACKSPACE = 0x08
KEY_RETURN = 0x0D

# First code that doesn't fit in a single byte
WIDE_KEY = 0x80
PLACEHOLDER_CHAR = '?'


class Window:
    """Base class for console windows.

    A window owns a rectangle of its console's surface and a private buffer
    mirroring what it last wrote there. All coordinates taken by its methods
    are window-local and are translated to surface coordinates on write.

    Windows must not overlap; nothing stops them from doing so, but the last
    writer wins on the surface.

    The owner is only weakly referenced: the caller keeps the Console alive.
    A window whose console has been garbage collected behaves as detached,
    so ``Window(Console(), rect)`` never draws anything.

    Attributes:
        rect: Region of the surface covered by the window (read-only)
        cursor: Window-local cursor position (read-only)
        owner: Console the window is registered with, or None if detached
    """

    def __init__(self, owner: Optional['Console'], rect: Rect):
        self._owner_ref = None
        self._focus = False
        self._rect = Rect(rect.x, rect.y, rect.w, rect.h)
        self._cursor = Point(0, 0)
        self._data = [[' '] * rect.w for _ in range(rect.h)]

        if owner is not None:
            owner.add_window(self)

    @property
    def owner(self) -> Optional['Console']:
        return self._owner_ref() if self._owner_ref is not None else None

    @property
    def rect(self) -> Rect:
        return Rect(self._rect.x, self._rect.y, self._rect.w, self._rect.h)

    @property
    def cursor(self) -> Point:
        return Point(self._cursor.x, self._cursor.y)

    def destroy(self):
        """Unregister from the owning console, giving up focus if held."""
        owner = self.owner
        if owner is not None:
            owner.remove_window(self)

    def has_focus(self) -> bool:
        """Whether this window receives input and owns the cursor."""
        return self._focus

    def give_focus(self):
        """Ask the owning console to focus this window."""
        owner = self.owner
        if owner is not None:
            owner.set_focus_window(self)

    def set_char(self, row: int, col: int, ch: str):
        """Write one character to the window.

        Out-of-range positions are ignored. The surface is written even if
        the cell already holds ``ch``.
        """
        if not (0 <= row < self._rect.h and 0 <= col < self._rect.w):
            return

        self._data[row][col] = ch

        owner = self.owner
        if owner is not None:
            owner._write_char(self._rect.x + col, self._rect.y + row, ch)
        elif self._owner_ref is not None:
            logger.debug("Dropped write from %r: its console no longer exists", self)

    def get_char(self, row: int, col: int) -> str:
        """Read back a character from the window's own buffer.

        Returns NO_CHAR for positions outside the window. The surface is
        never consulted.
        """
        if not (0 <= row < self._rect.h and 0 <= col < self._rect.w):
            return NO_CHAR
        return self._data[row][col]

    def set_cursor(self, row: int, col: int):
        """Move the window cursor.

        ``col`` may equal the window width, parking the cursor just past
        the last column. Out-of-range positions are ignored.
        """
        # col == width is allowed
        if not (0 <= row < self._rect.h and 0 <= col <= self._rect.w):
            return

        self._cursor = Point(col, row)

        owner = self.owner
        if self._focus and owner is not None:
            owner.reset_cursor()

    def scroll_window(self, rect: Rect, target: Point, fill_char: str = ' '):
        """Move a block of the window so its origin lands on target.

        Cells vacated by the move are filled with ``fill_char``. The window
        buffer is shifted along with the surface, so get_char() keeps
        reporting what is displayed.

        Args:
            rect: Window-local block to move
            target: Window-local destination of the block's top-left cell
            fill_char: Character for vacated cells
        """
        if rect.w <= 0 or rect.h <= 0:
            return

        scroll_cells(self._data, rect, target, fill_char)

        owner = self.owner
        if owner is not None:
            owner._scroll(
                Rect(rect.x + self._rect.x, rect.y + self._rect.y, rect.w, rect.h),
                Point(target.x + self._rect.x, target.y + self._rect.y),
                fill_char,
            )

    def handle_key(self, code: int):
        """Handle a plain key code while focused.

        Subclasses should override this to handle their specific input.
        """

    def handle_function_key(self, code: int):
        """Handle an extended/function key code while focused."""


class ScrollingTextWindow(Window):
    """A window that prints text and scrolls up when it runs out of rows.

    Output starts in the top-left corner. Text wraps at the right edge,
    and writing past the last row discards the top row.
    """

    def __init__(self, owner: Optional['Console'], rect: Rect):
        super().__init__(owner, rect)
        self._output_loc = Point(0, 0)

    @property
    def output_loc(self) -> Point:
        """Window-local position the next character is written at."""
        return Point(self._output_loc.x, self._output_loc.y)

    def clear(self):
        """Blank the window and move output to the top-left corner."""
        # Through set_char so the buffer stays in step with the surface
        for row in range(self._rect.h):
            for col in range(self._rect.w):
                self.set_char(row, col, ' ')

        self._output_loc = Point(0, 0)
        self.set_cursor(0, 0)

    def write(self, text: str):
        """Write text without word wrapping."""
        for ch in text:
            self._write_char(ch)

    def write_word_wrap_line(self, text: str, line_len: int = 0) -> Optional[str]:
        """Write text up to the point where it needs to wrap.

        Words shorter than the line are never split: if a word would
        overflow the current line, writing stops in front of it. A word that
        is longer than a whole line is written anyway and wraps at the window
        edge. A newline always ends the line.

        Args:
            text: Text to write
            line_len: Line length to wrap at; the window width if 0

        Returns:
            The text still to be written on the next line (possibly empty),
            or None once all of ``text`` has been written.
        """
        next_pos = self._write_line_from(text, 0, line_len)
        return text[next_pos:] if next_pos is not None else None

    def write_word_wrap(self, text: str, line_len: int = 0) -> int:
        """Write text, wrapping between words.

        Returns:
            Number of newlines written.
        """
        newlines = 0
        pos = self._write_line_from(text, 0, line_len)
        while pos is not None:
            self._write_char('\n')
            newlines += 1
            pos = self._write_line_from(text, pos, line_len)
        return newlines

    def _write_line_from(self, text: str, pos: int, line_len: int) -> Optional[int]:
        """Word wrapped write of text[pos:]; returns where the next line starts."""
        if not line_len:
            line_len = self._rect.w

        end = len(text)
        while pos < end:
            space_end = pos
            while space_end < end and text[space_end].isspace():
                if text[space_end] == '\n':
                    return space_end + 1
                space_end += 1

            space_len = space_end - pos
            if self._output_loc.x + space_len > line_len:
                return space_end

            word_end = space_end
            while word_end < end and not text[word_end].isspace():
                word_end += 1

            word_len = word_end - space_end
            if word_len < line_len and self._output_loc.x + space_len + word_len > line_len:
                return space_end

            for i in range(pos, word_end):
                self._write_char(text[i])
            pos = word_end

        return None

    def _write_char(self, ch: str):
        """Write one character at the output location and advance it."""
        if ch not in ('\t', '\n') and not ch.isprintable():
            return

        if ch == '\n' or self._output_loc.x == self._rect.w:
            self._new_line()
            if ch == '\n':
                return

        if ch == '\t':
            # TODO: stop the expansion at the right edge instead of wrapping
            for _ in range(TAB_WIDTH - self._output_loc.x % TAB_WIDTH):
                self._write_char(' ')
            return

        self.set_char(self._output_loc.y, self._output_loc.x, ch)
        self._output_loc.x += 1
        self.set_cursor(self._output_loc.y, self._output_loc.x)

    def _new_line(self):
        self._output_loc.x = 0
        self._output_loc.y += 1

        if self._output_loc.y == self._rect.h:
            self._output_loc.y -= 1
            self.scroll_window(Rect(0, 1, self._rect.w, self._rect.h - 1), Point(0, 0), ' ')


class LineInputWindow(Window):
    """A single-row window for typing lines of text.

    Completed lines are queued when Return is pressed and collected with
    read_line(). Only the end of a line that is longer than the window is
    shown.
    """

    def __init__(self, owner: Optional['Console'], rect: Rect):
        super().__init__(owner, rect)
        self._current_input: List[str] = []
        self._pending_input = deque()

    @property
    def current_input(self) -> str:
        """The line being typed."""
        return ''.join(self._current_input)

    def read_line(self) -> Optional[str]:
        """Pop the oldest completed line, or None if there isn't one."""
        if not self._pending_input:
            return None
        return self._pending_input.popleft()

    def handle_key(self, code: int):
        if code == KEY_RETURN:
            self._pending_input.append(''.join(self._current_input))
            self._current_input.clear()
        elif code == KEY_BACKSPACE:
            if self._current_input:
                self._current_input.pop()
        elif code >= WIDE_KEY:
            self._current_input.append(PLACEHOLDER_CHAR)
        else:
            self._current_input.append(chr(code))

        self._update_input_line()
        self._reset_cursor()

    def handle_function_key(self, code: int):
        pass

    def _update_input_line(self):
        shown = self._current_input[-self._rect.w:] if self._rect.w else []
        for col in range(self._rect.w):
            self.set_char(0, col, shown[col] if col < len(shown) else ' ')

    def _reset_cursor(self):
        self.set_cursor(0, min(len(self._current_input), self._rect.w))


class CharInputWindow(ScrollingTextWindow):
    """A scrolling text window that also captures raw key codes.

    Keys are not echoed; write() them if they should be shown.
    """

    def __init__(self, owner: Optional['Console'], rect: Rect):
        super().__init__(owner, rect)
        self._pending_keys = deque()

    def read_char(self) -> Optional[int]:
        """Pop the oldest key code, or None if there isn't one."""
        if not self._pending_keys:
            return None
        return self._pending_keys.popleft()

    def handle_key(self, code: int):
        self._pending_keys.append(code)


class Console:
    """Owner of a display surface and the windows drawn on it.

    The console clears the surface on initialize(), hands key input from
    its key source to the focused window on every update(), and places the
    physical cursor on the focused window's cursor. With no window focused
    the cursor rests in the bottom-right corner.

    update() never blocks; the host calls it periodically.

    Attributes:
        rect: Addressable part of the surface
        screen_rect: Visible part of rect
        windows: Registered windows
        focus_window: Window receiving input, or None
        default_attributes: Attributes every window writes with
    """

    def __init__(self, *, reserve_last_column: bool = True):
        self.reserve_last_column = reserve_last_column
        self.surface: Optional[Surface] = None
        self.key_source: Optional[KeySource] = None
        self.rect = Rect()
        self.screen_rect = Rect()
        self.default_attributes = None
        self.windows: List[Window] = []
        self.focus_window: Optional[Window] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()

    def initialize(self, surface: Surface, key_source: Optional[KeySource] = None) -> bool:
        """Take over a surface and clear it.

        Returns:
            False if already initialized or the surface can't report its
            geometry, True otherwise.
        """
        if self.surface is not None:
            logger.debug("Console already initialized")
            return False

        try:
            info = surface.get_info()
        except SurfaceError as exc:
            logger.warning("Can't initialize console: %s", exc)
            return False

        # Writing to the real last column makes some terminals scroll
        width = info.width - 1 if self.reserve_last_column else info.width
        self.rect = Rect(0, 0, width, info.height)
        self.default_attributes = info.attributes
        self.surface = surface
        self.key_source = key_source

        surface.fill(Rect(0, 0, info.width, info.height), ' ', self.default_attributes)
        self.reset_cursor()

        # Placing the cursor may have moved the viewport
        try:
            info = surface.get_info()
        except SurfaceError as exc:
            logger.warning("Can't initialize console: %s", exc)
            self.surface = None
            self.key_source = None
            self.rect = Rect()
            self.default_attributes = None
            return False

        viewport = info.viewport
        self.screen_rect = Rect(
            viewport.x,
            viewport.y,
            self.rect.w - viewport.x,
            self.rect.h - viewport.y,
        )
        logger.debug("Console initialized: rect=%s screen_rect=%s", self.rect, self.screen_rect)
        return True

    def shutdown(self):
        """Detach every window and let go of the surface."""
        while self.windows:
            self.remove_window(self.windows[-1])

        if self.surface is not None:
            logger.debug("Console shut down")
        self.surface = None
        self.key_source = None

    def update(self):
        """Route all pending key input to the focused window."""
        if self.surface is None or self.key_source is None:
            return

        while self.key_source.has_key():
            code = self.key_source.read_code()
            if code in (NULL_KEY, EXTENDED_KEY):
                code = self.key_source.read_code()
                if self.focus_window is not None:
                    self.focus_window.handle_function_key(code)
            elif self.focus_window is not None:
                self.focus_window.handle_key(code)

    def set_focus_window(self, window: Optional[Window]) -> bool:
        """Focus a window owned by this console, or clear focus with None."""
        if window is not None and window.owner is not self:
            logger.debug("Refusing focus for %r: not owned by this console", window)
            return False
        if self.focus_window is window:
            return True

        if self.focus_window is not None:
            self.focus_window._focus = False
        if window is not None:
            window._focus = True

        self.focus_window = window
        logger.debug("Focus moved to %r", window)
        self.reset_cursor()
        return True

    def add_window(self, window: Window) -> bool:
        """Register a detached window with this console."""
        if window.owner is not None:
            logger.debug("Refusing to add %r: already owned", window)
            return False

        self.windows.append(window)
        window._owner_ref = weakref.ref(self)
        logger.debug("Added %r at %s", window, window.rect)
        return True

    def remove_window(self, window: Window) -> bool:
        """Unregister a window, clearing focus first if it has it."""
        if window.owner is not self:
            logger.debug("Refusing to remove %r: not owned by this console", window)
            return False

        if self.focus_window is window:
            self.set_focus_window(None)

        window._owner_ref = None
        # By identity, not equality
        for i, registered in enumerate(self.windows):
            if registered is window:
                del self.windows[i]
                break
        logger.debug("Removed %r", window)
        return True

    def reset_cursor(self):
        """Place the physical cursor for the current focus."""
        if self.surface is None:
            return

        if self.focus_window is not None:
            rect = self.focus_window.rect
            cursor = self.focus_window.cursor
            self.surface.set_cursor(rect.x + cursor.x, rect.y + cursor.y)
        else:
            self.surface.set_cursor(self.rect.w, self.rect.h - 1)

    def _write_char(self, x: int, y: int, ch: str):
        if self.surface is not None:
            self.surface.write_char(x, y, ch, self.default_attributes)

    def _scroll(self, rect: Rect, target: Point, fill_char: str):
        if self.surface is not None:
            self.surface.scroll(rect, target, fill_char, self.default_attributes)
