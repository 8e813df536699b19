"""
Terminal Console Library

A lightweight library for splitting a character-grid console into windows.
Provides a Console that owns the display surface and routes key input to
the focused window, plus scrolling text output, line input and raw
character input windows.
"""

from .geometry import Point, Rect
from .surface import (
    EXTENDED_KEY,
    NULL_KEY,
    BlessedKeySource,
    BlessedSurface,
    KeySource,
    MemorySurface,
    QueueKeySource,
    Surface,
    SurfaceError,
    SurfaceInfo,
)
from .term_console import (
    CharInputWindow,
    Console,
    LineInputWindow,
    ScrollingTextWindow,
    Window,
)

__all__ = [
    'Rect',
    'Point',
    'Surface',
    'SurfaceInfo',
    'SurfaceError',
    'MemorySurface',
    'BlessedSurface',
    'KeySource',
    'QueueKeySource',
    'BlessedKeySource',
    'NULL_KEY',
    'EXTENDED_KEY',
    'Window',
    'ScrollingTextWindow',
    'LineInputWindow',
    'CharInputWindow',
    'Console',
]

__version__ = '0.1.0'
