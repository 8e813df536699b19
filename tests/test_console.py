"""Tests for Console class."""

import pytest
from unittest.mock import Mock
from term_console import (
    NULL_KEY,
    CharInputWindow,
    Console,
    LineInputWindow,
    MemorySurface,
    Point,
    QueueKeySource,
    Rect,
    Surface,
    SurfaceError,
    SurfaceInfo,
    Window,
)


class RecordingWindow(Window):
    """A window that remembers every key routed to it."""

    def __init__(self, owner, rect):
        super().__init__(owner, rect)
        self.keys = []
        self.function_keys = []

    def handle_key(self, code):
        self.keys.append(code)

    def handle_function_key(self, code):
        self.function_keys.append(code)


class TestConsoleInitialize:
    """Tests for Console.initialize() and shutdown()."""

    def test_default_initialization(self):
        console = Console()

        assert console.surface is None
        assert console.windows == []
        assert console.focus_window is None

    def test_initialize(self, surface):
        """Test that the last column is reserved and the surface cleared."""
        surface.write_char(0, 0, 'x', 0x07)
        console = Console()

        assert console.initialize(surface) is True
        assert console.rect == Rect(0, 0, 19, 10)
        assert console.screen_rect == Rect(0, 0, 19, 10)
        assert console.default_attributes == 0x07
        assert surface.display == [''] * 10

    def test_initialize_places_idle_cursor(self, surface):
        console = Console()
        console.initialize(surface)

        assert surface.get_cursor() == Point(19, 9)

    def test_initialize_without_reserved_column(self, surface):
        console = Console(reserve_last_column=False)
        console.initialize(surface)

        assert console.rect == Rect(0, 0, 20, 10)

    def test_screen_rect_follows_viewport(self):
        """Test that the visible rect starts at the viewport origin."""
        surface = MemorySurface(width=20, height=30, viewport=Rect(0, 20, 20, 10))
        console = Console()
        console.initialize(surface)

        assert console.rect == Rect(0, 0, 19, 30)
        assert console.screen_rect == Rect(0, 20, 19, 10)

    def test_initialize_twice(self, console):
        """Test that a console can't be initialized again."""
        assert console.initialize(MemorySurface()) is False

    def test_initialize_geometry_unavailable(self):
        """Test that a surface without geometry fails initialization."""
        surface = Mock(spec=Surface)
        surface.get_info.side_effect = SurfaceError("no console attached")
        console = Console()

        assert console.initialize(surface) is False
        assert console.surface is None
        surface.fill.assert_not_called()

        # Nothing was left half initialized
        assert console.initialize(MemorySurface()) is True

    def test_initialize_second_query_fails(self):
        """Test that a failed second query leaves no stale geometry."""
        surface = Mock(spec=Surface)
        surface.get_info.side_effect = [
            SurfaceInfo(20, 10, Rect(0, 0, 20, 10), 0x07),
            SurfaceError("console went away"),
        ]
        console = Console()

        assert console.initialize(surface) is False
        assert console.surface is None
        assert console.rect == Rect()
        assert console.default_attributes is None

    def test_shutdown(self, surface, keys):
        """Test that shutdown detaches every window."""
        console = Console()
        console.initialize(surface, keys)
        first = Window(console, Rect(0, 0, 5, 1))
        second = LineInputWindow(console, Rect(0, 1, 5, 1))
        second.give_focus()

        console.shutdown()

        assert console.windows == []
        assert console.focus_window is None
        assert console.surface is None
        assert first.owner is None
        assert second.owner is None
        assert second.has_focus() is False

    def test_update_after_shutdown(self, surface, keys):
        console = Console()
        console.initialize(surface, keys)
        console.shutdown()
        keys.feed_text('a')

        console.update()

        assert keys.has_key() is True

    def test_context_manager(self, surface):
        with Console() as console:
            console.initialize(surface)
            window = Window(console, Rect(0, 0, 5, 1))

        assert console.surface is None
        assert window.owner is None


class TestConsoleWindows:
    """Tests for window registration."""

    def test_add_window_already_owned(self, console):
        window = Window(console, Rect(0, 0, 5, 1))

        assert console.add_window(window) is False
        assert console.windows.count(window) == 1

    def test_add_window_owned_elsewhere(self, console):
        other = Console()
        window = Window(other, Rect(0, 0, 5, 1))

        assert console.add_window(window) is False
        assert window.owner is other

    def test_add_detached_window(self, console):
        window = Window(None, Rect(0, 0, 5, 1))

        assert console.add_window(window) is True
        assert window.owner is console

    def test_remove_window_not_owned(self, console):
        window = Window(None, Rect(0, 0, 5, 1))
        assert console.remove_window(window) is False

    def test_remove_window_by_identity(self, console):
        first = Window(console, Rect(0, 0, 5, 1))
        second = Window(console, Rect(0, 1, 5, 1))

        console.remove_window(second)

        assert console.windows == [first]


class TestConsoleFocus:
    """Tests for focus and input routing."""

    def test_focus_is_exclusive(self, console):
        first = CharInputWindow(console, Rect(0, 0, 5, 2))
        second = CharInputWindow(console, Rect(0, 2, 5, 2))

        console.set_focus_window(first)
        console.set_focus_window(second)

        assert first.has_focus() is False
        assert second.has_focus() is True
        assert console.focus_window is second

    def test_keys_go_to_focused_window_only(self, console, keys):
        first = CharInputWindow(console, Rect(0, 0, 5, 2))
        second = CharInputWindow(console, Rect(0, 2, 5, 2))
        console.set_focus_window(first)
        console.set_focus_window(second)

        keys.feed_text('x')
        console.update()

        assert second.read_char() == ord('x')
        assert first.read_char() is None

    def test_focus_same_window(self, console):
        window = Window(console, Rect(0, 0, 5, 1))
        console.set_focus_window(window)

        assert console.set_focus_window(window) is True
        assert window.has_focus() is True

    def test_focus_moves_cursor(self, console, surface):
        """Test that the physical cursor goes to the focused window."""
        window = LineInputWindow(console, Rect(3, 2, 5, 1))
        window.handle_key(ord('a'))

        console.set_focus_window(window)

        assert surface.get_cursor() == Point(4, 2)

    def test_clear_focus(self, console, surface):
        """Test that clearing focus parks the cursor bottom right."""
        window = Window(console, Rect(3, 2, 5, 1))
        console.set_focus_window(window)

        assert console.set_focus_window(None) is True

        assert window.has_focus() is False
        assert console.focus_window is None
        assert surface.get_cursor() == Point(19, 9)

    def test_remove_focused_window_drops_keys(self, console, keys):
        """Test that keys are not delivered to a removed window."""
        window = CharInputWindow(console, Rect(0, 0, 5, 2))
        window.give_focus()

        console.remove_window(window)
        keys.feed_text('x')
        console.update()

        assert console.focus_window is None
        assert window.has_focus() is False
        assert window.read_char() is None
        assert keys.has_key() is False

    def test_update_without_focus_drains_input(self, console, keys):
        keys.feed_text('abc')
        keys.feed_function(0x48)
        console.update()

        assert keys.has_key() is False

    def test_function_key_routing(self, console, keys):
        """Test that both extended markers route to the function key handler."""
        window = RecordingWindow(console, Rect(0, 0, 5, 1))
        window.give_focus()

        keys.feed(NULL_KEY, 59)
        keys.feed_function(72)
        keys.feed(65)
        console.update()

        assert window.function_keys == [59, 72]
        assert window.keys == [65]

    def test_update_preserves_order(self, console, keys):
        window = RecordingWindow(console, Rect(0, 0, 5, 1))
        window.give_focus()

        keys.feed_text('hello')
        console.update()

        assert window.keys == [ord(ch) for ch in 'hello']

    def test_update_without_key_source(self, surface):
        console = Console()
        console.initialize(surface)
        window = RecordingWindow(console, Rect(0, 0, 5, 1))
        window.give_focus()

        console.update()

        assert window.keys == []

    def test_focus_change_during_update(self, console, keys):
        """Test that keys follow a focus change made by a handler."""
        second = RecordingWindow(console, Rect(0, 1, 5, 1))

        class Switcher(RecordingWindow):
            def handle_key(self, code):
                super().handle_key(code)
                second.give_focus()

        first = Switcher(console, Rect(0, 0, 5, 1))
        first.give_focus()

        keys.feed_text('ab')
        console.update()

        assert first.keys == [ord('a')]
        assert second.keys == [ord('b')]
