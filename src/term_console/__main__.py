"""
Demo: an output pane above a one-line prompt.

Lines typed at the prompt are echoed into the output pane. Type ``quit``
or ``exit`` to leave.
"""

import argparse
import logging
import sys
import time

from blessed import Terminal

from .geometry import Rect
from .surface import BlessedKeySource, BlessedSurface
from .term_console import Console, LineInputWindow, ScrollingTextWindow

logger = logging.getLogger(__name__)

QUIT_COMMANDS = ('quit', 'exit')


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='term-console-demo', description=__doc__.strip().splitlines()[0])
    parser.add_argument(
        '--idle-sleep',
        type=float,
        default=0.01,
        help="seconds to sleep between input polls (default: %(default)s)",
    )
    parser.add_argument(
        '--log-file',
        help="write debug logging to this file; nothing is logged otherwise",
    )
    return parser.parse_args(argv)


def run(term: Terminal, idle_sleep: float) -> int:
    """Enter the demo's event loop until the user quits."""
    with term.fullscreen(), term.cbreak(), Console() as console:
        if not console.initialize(BlessedSurface(term), BlessedKeySource(term)):
            print("Unable to take over the terminal", file=sys.stderr)
            return 1

        screen = console.screen_rect
        if screen.h < 3:
            print("Terminal is too small", file=sys.stderr)
            return 1

        output = ScrollingTextWindow(console, Rect(screen.x, screen.y, screen.w, screen.h - 2))
        divider = ScrollingTextWindow(console, Rect(screen.x, screen.y + screen.h - 2, screen.w, 1))
        prompt = LineInputWindow(console, Rect(screen.x, screen.y + screen.h - 1, screen.w, 1))

        divider.write('-' * (screen.w - 1))
        output.write_word_wrap("Type a line and press Enter. Type 'quit' to leave.")
        prompt.give_focus()

        while True:
            console.update()

            line = prompt.read_line()
            while line is not None:
                if line.strip().lower() in QUIT_COMMANDS:
                    return 0
                logger.debug("Read line %r", line)
                output.write('\n')
                output.write_word_wrap(f"> {line}")
                line = prompt.read_line()

            time.sleep(idle_sleep)


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=logging.DEBUG,
            format='%(asctime)s %(name)s %(levelname)s: %(message)s',
        )
    return run(Terminal(), args.idle_sleep)


if __name__ == '__main__':
    sys.exit(main())
