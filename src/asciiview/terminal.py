"""Small helper for presenting glyph frames on an ANSI terminal."""

from __future__ import annotations

import os
import select
import shutil
import sys
import termios
import tty
from typing import List, Optional, Tuple

TermiosAttr = List[int | List[bytes | int]]
RGB = Tuple[int, int, int]

_ARROWS = {"A": "UP", "B": "DOWN", "C": "RIGHT", "D": "LEFT"}


def parse_hex_color(value: str) -> RGB:
    """Parse ``#RRGGBB`` (or ``RRGGBB``) into an ``(r, g, b)`` tuple."""

    cleaned = value.strip().lstrip("#")
    if len(cleaned) != 6:
        raise ValueError(f"Expected a #RRGGBB colour, got '{value}'")
    try:
        return (int(cleaned[0:2], 16), int(cleaned[2:4], 16), int(cleaned[4:6], 16))
    except ValueError as exc:
        raise ValueError(f"Expected a #RRGGBB colour, got '{value}'") from exc


def colour_prefix(foreground: Optional[RGB], background: Optional[RGB]) -> str:
    parts = []
    if foreground is not None:
        parts.append("\033[38;2;{};{};{}m".format(*foreground))
    if background is not None:
        parts.append("\033[48;2;{};{};{}m".format(*background))
    return "".join(parts)


class TerminalController:
    """Context manager that prepares the terminal for frame-by-frame output."""

    def __init__(
        self,
        *,
        clear: bool = True,
        foreground: Optional[RGB] = None,
        background: Optional[RGB] = None,
    ) -> None:
        self._clear = clear
        self._prefix = colour_prefix(foreground, background)
        self._cursor_hidden = False
        self._stdin_fd: Optional[int] = None
        self._termios_before: Optional[TermiosAttr] = None
        self._input_enabled = False

    def __enter__(self) -> "TerminalController":
        sys.stdout.write(self._prefix)
        if self._clear:
            sys.stdout.write("\033[2J")
        sys.stdout.write("\033[H\033[?25l")
        sys.stdout.flush()
        self._cursor_hidden = True

        if sys.stdin.isatty():
            fd = sys.stdin.fileno()
            try:
                self._termios_before = termios.tcgetattr(fd)
                tty.setcbreak(fd)
            except termios.error:
                self._termios_before = None
            else:
                self._stdin_fd = fd
                self._input_enabled = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()

    def restore(self) -> None:
        if self._cursor_hidden:
            sys.stdout.write("\033[0m\033[?25h")
            sys.stdout.flush()
            self._cursor_hidden = False

        if self._input_enabled and self._stdin_fd is not None and self._termios_before is not None:
            try:
                termios.tcsetattr(self._stdin_fd, termios.TCSADRAIN, self._termios_before)
            except termios.error:
                pass
        self._input_enabled = False
        self._stdin_fd = None
        self._termios_before = None

    def draw(self, frame: str) -> None:
        sys.stdout.write("\033[H")
        sys.stdout.write(self._prefix)
        sys.stdout.write(frame)
        sys.stdout.write("\033[0m")
        sys.stdout.flush()

    def size_tuple(self) -> Tuple[int, int]:
        size = shutil.get_terminal_size(fallback=(100, 40))
        return size.columns, size.lines

    def poll_keys(self) -> List[str]:
        """Drain pending key presses; arrow keys come back as UP/DOWN/LEFT/RIGHT."""

        if not self._input_enabled or self._stdin_fd is None:
            return []

        keys: List[str] = []
        try:
            while self._readable():
                char = self._read_char()
                if char is None:
                    break
                if not char:
                    continue
                if char == "\x03":
                    raise KeyboardInterrupt
                if char == "\x1b":
                    key = self._map_escape_sequence(self._read_escape_sequence())
                    if key is not None:
                        keys.append(key)
                    continue
                keys.append(char)
        except OSError:
            return keys
        return keys

    def _readable(self) -> bool:
        readable, _, _ = select.select([sys.stdin], [], [], 0)
        return bool(readable)

    def _read_char(self) -> Optional[str]:
        if self._stdin_fd is None:
            return None
        data = os.read(self._stdin_fd, 1)
        if not data:
            return None
        return data.decode("utf-8", errors="ignore")

    def _read_escape_sequence(self) -> str:
        sequence = "\x1b"
        while self._readable():
            char = self._read_char()
            if char is None:
                break
            sequence += char
            if char.isalpha() or char == "~":
                break
        return sequence

    @staticmethod
    def _map_escape_sequence(sequence: str) -> Optional[str]:
        if sequence.startswith("\x1b[") and sequence[-1:] in _ARROWS:
            return _ARROWS[sequence[-1]]
        return None
