#!/usr/bin/env python3

# Copyright (c) 2026 Kilo contributors
# SPDX-License-Identifier: ISC

"""
Overview
========

A small full-screen text editor for VT100-style terminals, built on kiloterm
(raw-mode terminal I/O).

The screen is redrawn in full on every pass through the main loop. Each frame
is composed into a single buffer and written with one write, so the terminal
never shows a half-drawn screen. Rows past the end of the text are marked
with a '~', and a welcome banner is shown a third of the way down.

Keys:

  Ctrl-Q : Quit

Running
=======

Run kilo from a terminal. The terminal is switched to raw mode on startup and
put back the way it was on exit, including when exiting on an error.

The terminal size is read from the OS. If that fails, the cursor is pushed to
the bottom-right corner and the terminal is asked where it ended up;
--probe-geometry always does this, which helps with debugging terminals that
report a bogus size.

The exit status is 0 after Ctrl-Q, and 1 on errors.
"""

import argparse
import sys

import kiloterm
from kiloterm import (
    CLEAR_LINE,
    CLEAR_SCREEN,
    CURSOR_HOME,
    HIDE_CURSOR,
    SHOW_CURSOR,
    RenderBuffer,
    TerminalError,
)

KILO_VERSION = "0.0.1"

WELCOME = f"Kilo editor -- version {KILO_VERSION}"

# Shown at the start of rows with no text on them
_MARKER = b"~"


def ctrl_key(ch):
    """Return the byte a terminal sends for Ctrl + 'ch'."""
    return ord(ch) & 0x1F


QUIT_KEY = ctrl_key("q")


class EditorState:
    """
    Cursor position and terminal size. Only the input loop's dispatch step
    changes it.
    """

    __slots__ = ("cx", "cy", "geometry")

    def __init__(self, geometry, cx=0, cy=0):
        self.geometry = geometry
        self.cx = cx
        self.cy = cy

    def __repr__(self):
        return f"EditorState(cx={self.cx}, cy={self.cy}, geometry={self.geometry})"


def init_editor(fd_in, fd_out, force_probe=False):
    # Raw mode must already be on: the geometry probe reads the reply
    # unbuffered
    return EditorState(kiloterm.resolve_geometry(fd_in, fd_out, force_probe))


#
# Output
#


def _banner(cols):
    # The welcome line, cut to the screen width and centered, with the row
    # marker taking the first cell of the padding
    welcome = WELCOME.encode("ascii")[:cols]
    padding = (cols - len(welcome)) // 2

    row = b""
    if padding:
        row += _MARKER
        padding -= 1
    return row + b" " * padding + welcome


def draw_rows(buf, state):
    """Append the contents of every screen row to 'buf'."""
    rows = state.geometry.rows
    banner_row = rows // 3

    for y in range(rows):
        if y == banner_row:
            buf.append(_banner(state.geometry.cols))
        else:
            buf.append(_MARKER)

        buf.append(CLEAR_LINE)
        if y < rows - 1:
            buf.append(b"\r\n")


def refresh_screen(state, fd_out):
    """Compose one frame and write it to 'fd_out' in a single write."""
    with RenderBuffer() as buf:
        buf.append(HIDE_CURSOR)
        buf.append(CURSOR_HOME)

        draw_rows(buf, state)

        buf.append(CURSOR_HOME)
        buf.append(SHOW_CURSOR)

        return buf.flush(fd_out)


#
# Input
#


def process_keypress(state, key, fd_out):
    """
    Act on 'key'. Returns False if the editor should quit, after clearing
    the screen, and True otherwise.

    'state' is handed to dispatch by exclusive reference; key bindings that
    move the cursor update it here and nowhere else. Quit leaves it alone.
    """
    if key == QUIT_KEY:
        kiloterm.write_now(fd_out, CLEAR_SCREEN + CURSOR_HOME)
        return False

    # Nothing else is bound yet
    return True


def editor_loop(mode, fd_out, geometry=None, force_probe=False):
    """
    Main loop: redraw, wait for a key, act on it. 'mode' is the active
    kiloterm.TerminalMode. Returns the exit status.
    """
    if geometry is None:
        state = init_editor(mode.fd, fd_out, force_probe)
    else:
        state = EditorState(geometry)

    while True:
        refresh_screen(state, fd_out)

        key = kiloterm.read_key(mode.fd)
        if key is None:
            # Read timed out. Redraw and wait again.
            continue

        if not process_keypress(state, key, fd_out):
            mode.exit()
            return 0


#
# Main application
#


def _die(fd_out, e):
    # Clears the screen, ignoring errors (the terminal may be the problem),
    # and reports 'e'
    try:
        kiloterm.write_now(fd_out, CLEAR_SCREEN + CURSOR_HOME)
    except TerminalError:
        pass
    print(f"kilo: error: {e}", file=sys.stderr)


def main(fd_in=None, fd_out=None, force_probe=False):
    """
    Runs the editor on the terminal at 'fd_in'/'fd_out' (stdin/stdout by
    default) and returns the exit status. The terminal is restored before
    this returns, on every path.
    """
    if fd_out is None:
        fd_out = sys.stdout.fileno()

    try:
        return kiloterm.run(
            lambda mode: editor_loop(mode, fd_out, force_probe=force_probe), fd_in
        )
    except TerminalError as e:
        _die(fd_out, e)
        return 1


def _main():
    parser = argparse.ArgumentParser(
        prog="kilo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=__doc__,
    )

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {KILO_VERSION}"
    )

    parser.add_argument(
        "--probe-geometry",
        action="store_true",
        help="Skip the OS window-size query and find the terminal size with "
        "a cursor-position report",
    )

    args = parser.parse_args()

    sys.exit(main(force_probe=args.probe_geometry))


if __name__ == "__main__":
    _main()
