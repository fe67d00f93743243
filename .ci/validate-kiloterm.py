#!/usr/bin/env python3
"""Validate kiloterm and kilo.

Exercises the escape-sequence vocabulary, reply parsing and the render
buffer without a terminal, then the full raw-mode enter/exit cycle and
geometry resolution when run on a real TTY.

Run from the project root: python .ci/validate-kiloterm.py
"""

import os
import sys

# Ensure the project root (CWD) is on the import path, since Python
# adds the script's directory (.ci/) rather than CWD by default.
sys.path.insert(0, os.getcwd())


def check_kiloterm_units():
    """Escape sequences, reply parsing, RenderBuffer -- no terminal required."""
    import kiloterm
    from kiloterm import CursorPosition, GeometryProbeError, RenderBuffer

    assert kiloterm.cursor_forward(999) == b"\x1b[999C", "cursor forward"
    assert kiloterm.cursor_down(999) == b"\x1b[999B", "cursor down"
    assert kiloterm.CURSOR_REPORT_REQUEST == b"\x1b[6n", "report request"

    assert kiloterm.parse_cursor_reply(b"\x1b[24;80") == CursorPosition(
        24, 80
    ), "reply parse"
    try:
        kiloterm.parse_cursor_reply(b"24;80")
    except GeometryProbeError:
        pass
    else:
        raise AssertionError("reply without ESC [ accepted")

    buf = RenderBuffer()
    buf.append(b"A")
    buf.append(b"BC")
    assert buf.getvalue() == b"ABC", "append order"
    buf.release()
    assert len(buf) == 0, "release"

    print("kiloterm unit checks passed")


def check_terminal_mode():
    """Raw mode enter/exit and geometry -- requires a TTY."""
    import termios

    import kiloterm

    if not (os.isatty(sys.stdin.fileno()) and os.isatty(sys.stdout.fileno())):
        print("Terminal mode checks skipped (no TTY)")
        return

    fd = sys.stdin.fileno()
    before = termios.tcgetattr(fd)

    with kiloterm.TerminalMode(fd) as mode:
        raw = termios.tcgetattr(fd)
        assert not raw[3] & termios.ECHO, "echo off in raw mode"
        assert not raw[3] & termios.ICANON, "canonical mode off in raw mode"
        geometry = kiloterm.resolve_geometry(fd, sys.stdout.fileno())
        mode.exit()
        mode.exit()

    assert termios.tcgetattr(fd) == before, "attributes restored"
    assert geometry.rows > 0 and geometry.cols > 0, "geometry"
    print("Terminal mode checks passed ({})".format(geometry))


def check_frame():
    """Frame composition -- no terminal required."""
    import kilo
    from kiloterm import Geometry, RenderBuffer

    buf = RenderBuffer()
    kilo.draw_rows(buf, kilo.EditorState(Geometry(24, 80)))
    rows = buf.getvalue().split(b"\r\n")
    assert len(rows) == 24, "row count"
    assert rows[0] == b"~\x1b[K", "marker row"
    assert kilo.WELCOME.encode() in rows[8], "banner row"

    print("Frame checks passed")


if __name__ == "__main__":
    check_kiloterm_units()
    check_frame()
    check_terminal_mode()
    print("All checks passed")
