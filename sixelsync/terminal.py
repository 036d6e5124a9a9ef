"""
SixelSync - Terminal Output
============================
Ordered writes of frame payloads and cursor control to a text stream.
"""

import sys
from threading import Lock
from typing import Optional, TextIO

# ANSI escape codes
ESC = "\033"
CURSOR_HOME = f"{ESC}[H"
HIDE_CURSOR = f"{ESC}[?25l"
SHOW_CURSOR = f"{ESC}[?25h"


class TerminalOutput:
    """
    Output sink for the player.

    Every write is flushed immediately so a frame is on screen when
    ``write_frame`` returns.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self.lock = Lock()
        self.cursor_hidden = False

    def write(self, text: str):
        with self.lock:
            self.stream.write(text)
            self.stream.flush()

    def write_frame(self, payload: str):
        """Draw a frame from the top-left corner."""
        self.write(CURSOR_HOME + payload)

    def hide_cursor(self):
        self.write(HIDE_CURSOR)
        self.cursor_hidden = True

    def show_cursor(self):
        self.write(SHOW_CURSOR)
        self.cursor_hidden = False
