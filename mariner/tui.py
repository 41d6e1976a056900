"""curses front-end: paints snapshots and turns key codes into messages."""

from __future__ import annotations

import asyncio
import curses
import logging
from typing import Any, Callable

from mariner.app import messages as msg
from mariner.app.state import AppModel
from mariner.view import render_lines

logger = logging.getLogger(__name__)

# getch() returns -1 when no key is waiting.
POLL_INTERVAL_S = 0.05

_NAMED_KEYS = {
    curses.KEY_UP: "up",
    curses.KEY_DOWN: "down",
    curses.KEY_ENTER: "enter",
    curses.KEY_BACKSPACE: "backspace",
    10: "enter",
    13: "enter",
    9: "tab",
    27: "esc",
    127: "backspace",
    8: "backspace",
    3: "ctrl+c",
}


def key_name(code: int) -> str | None:
    """Name for a curses key code, or ``None`` for keys the app ignores."""
    if code in _NAMED_KEYS:
        return _NAMED_KEYS[code]
    if 32 <= code < 127:
        return chr(code)
    return None


class Screen:
    def __init__(self, stdscr: Any):
        self._stdscr = stdscr

    def setup(self) -> None:
        curses.curs_set(0)
        curses.raw()
        self._stdscr.nodelay(True)
        self._stdscr.keypad(True)

    def size(self) -> tuple[int, int]:
        height, width = self._stdscr.getmaxyx()
        return width, height

    def paint(self, model: AppModel) -> None:
        height, width = self._stdscr.getmaxyx()
        self._stdscr.erase()
        for row, line in enumerate(render_lines(model)[: height - 1]):
            try:
                self._stdscr.addstr(row, 0, line[: width - 1])
            except curses.error:
                # Writing into the bottom-right cell raises; the line is still drawn.
                pass
        self._stdscr.refresh()

    async def read_keys(self, post: Callable[[msg.Message], None]) -> None:
        """Poll getch() and post key and resize messages until cancelled."""
        while True:
            code = self._stdscr.getch()
            if code == -1:
                await asyncio.sleep(POLL_INTERVAL_S)
                continue
            if code == curses.KEY_RESIZE:
                width, height = self.size()
                post(msg.WindowResized(width=width, height=height))
                continue
            name = key_name(code)
            if name is not None:
                post(msg.KeyPressed(key=name))
