#!/usr/bin/env python3

# Copyright (c) 2026 Kilo contributors
# SPDX-License-Identifier: ISC

"""
kiloterm -- raw-mode terminal I/O for the kilo editor

A small layer over termios for a full-screen, VT100-style editor: putting the
controlling terminal into raw mode and guaranteeing it is put back, finding
out how big the terminal is, and coalescing a frame's worth of escape
sequences into a single write.

Zero external dependencies. Uses only Python stdlib: termios, atexit, errno,
os, re and sys.

Platform support: Unix (Linux, macOS) with any VT100-capable terminal.
"""

import atexit
import errno
import os
import re
import sys
import termios


# ---------------------------------------------------------------------------
# Escape sequences
# ---------------------------------------------------------------------------

CLEAR_SCREEN = b"\x1b[2J"
CURSOR_HOME = b"\x1b[H"
HIDE_CURSOR = b"\x1b[?25l"
SHOW_CURSOR = b"\x1b[?25h"
CLEAR_LINE = b"\x1b[K"  # erase from cursor to end of line
CURSOR_REPORT_REQUEST = b"\x1b[6n"

# Reply to CURSOR_REPORT_REQUEST: ESC [ row ; col R
_REPLY_INTRODUCER = b"\x1b["
_REPLY_TERMINATOR = b"R"
_REPLY_RE = re.compile(rb"(\d+);(\d+)")


def cursor_forward(n):
    """Return the sequence that moves the cursor right by n columns."""
    return b"\x1b[%dC" % n


def cursor_down(n):
    """Return the sequence that moves the cursor down by n rows."""
    return b"\x1b[%dB" % n


# Longest cursor-position reply we are prepared to read
REPLY_CAPACITY = 32

# Far enough past any real screen edge that the terminal clamps to it
_PROBE_DISTANCE = 999

# Raw-mode read policy: return after 0 bytes or 1/10 s, whichever is first
VMIN = 0
VTIME = 1


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TerminalError(Exception):
    """
    Base class for fatal terminal errors. 'operation' names the call that
    failed and 'reason' says why, in the manner of perror().
    """

    def __init__(self, operation, reason):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation}: {reason}")


class TerminalQueryError(TerminalError):
    """Reading the terminal attributes failed (not a terminal, I/O error)."""


class TerminalConfigureError(TerminalError):
    """Applying terminal attributes failed."""


class GeometryUnavailable(TerminalError):
    """The terminal size could not be established."""


class GeometryProbeError(GeometryUnavailable):
    """The cursor-position probe got no usable reply."""


class InputReadError(TerminalError):
    """Reading a key failed for a reason other than the read timing out."""


class OutputWriteError(TerminalError):
    """Writing to the terminal failed."""


def _reason(e):
    # termios.error carries (errno, message) in args; OSError has strerror
    if isinstance(e, OSError) and e.strerror:
        return e.strerror
    if len(e.args) > 1:
        return e.args[1]
    return str(e)


def _warn(*args):
    # Reports a problem that must not abort the exit path
    print("kiloterm warning: ", end="", file=sys.stderr)
    print(*args, file=sys.stderr)


# ---------------------------------------------------------------------------
# Terminal mode
# ---------------------------------------------------------------------------


class TerminalState:
    """
    Snapshot of a terminal's line-discipline attributes, as returned by
    termios.tcgetattr(). Never modified after capture; raw_attributes()
    derives new attribute lists from it.
    """

    __slots__ = ("iflag", "oflag", "cflag", "lflag", "ispeed", "ospeed", "cc")

    def __init__(self, iflag, oflag, cflag, lflag, ispeed, ospeed, cc):
        self.iflag = iflag
        self.oflag = oflag
        self.cflag = cflag
        self.lflag = lflag
        self.ispeed = ispeed
        self.ospeed = ospeed
        self.cc = tuple(cc)

    @classmethod
    def capture(cls, fd):
        """Read the current attributes of 'fd'."""
        try:
            attrs = termios.tcgetattr(fd)
        except (termios.error, OSError) as e:
            raise TerminalQueryError("tcgetattr", _reason(e)) from e
        return cls(*attrs)

    def attributes(self):
        """Return a fresh list in the format termios.tcsetattr() takes."""
        return [
            self.iflag,
            self.oflag,
            self.cflag,
            self.lflag,
            self.ispeed,
            self.ospeed,
            list(self.cc),
        ]

    def __eq__(self, other):
        if not isinstance(other, TerminalState):
            return NotImplemented
        return self.attributes() == other.attributes()

    def __hash__(self):
        return hash((self.iflag, self.oflag, self.cflag, self.lflag, self.cc))

    def __repr__(self):
        return (
            f"TerminalState(iflag={self.iflag:#x}, oflag={self.oflag:#x}, "
            f"cflag={self.cflag:#x}, lflag={self.lflag:#x})"
        )


def raw_attributes(state):
    """
    Return the tcsetattr() attribute list for raw mode, derived from 'state'.

    Input: no break signal, parity check, 8th-bit stripping, CR-to-NL or
    flow control. Output: no post-processing. 8-bit characters. Local: no
    echo, canonical mode, extended input or signals. Reads return after
    VMIN bytes or VTIME tenths of a second.
    """
    attrs = state.attributes()
    attrs[0] &= ~(
        termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON
    )
    attrs[1] &= ~termios.OPOST
    attrs[2] |= termios.CS8
    attrs[3] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
    attrs[6][termios.VMIN] = VMIN
    attrs[6][termios.VTIME] = VTIME
    return attrs


class TerminalMode:
    """
    Exclusive raw-mode access to a terminal. enter() switches the terminal
    to raw mode, exit() puts back the attributes captured by enter().

    Usable as a context manager. exit() is also registered with atexit
    while raw mode is active, so the terminal is restored even if the
    process leaves through sys.exit() somewhere else.
    """

    def __init__(self, fd=None):
        self.fd = sys.stdin.fileno() if fd is None else fd
        self._state = None
        self._active = False

    @property
    def state(self):
        """The TerminalState captured by enter(), or None."""
        return self._state

    @property
    def active(self):
        return self._active

    def enter(self):
        """
        Capture the current attributes and apply raw mode. Does nothing if
        raw mode is already on, so the first snapshot is the one restored.
        """
        if self._active:
            return self

        self._state = TerminalState.capture(self.fd)
        self._active = True
        atexit.register(self.exit)

        try:
            termios.tcsetattr(self.fd, termios.TCSAFLUSH, raw_attributes(self._state))
        except (termios.error, OSError) as e:
            self.exit()
            raise TerminalConfigureError("tcsetattr", _reason(e)) from e

        return self

    def exit(self):
        """
        Put back the attributes captured by enter(). Safe to call more than
        once; only the first call after enter() touches the terminal. Never
        raises. A failed restore is reported on stderr.
        """
        if not self._active:
            return

        self._active = False
        atexit.unregister(self.exit)
        try:
            termios.tcsetattr(self.fd, termios.TCSAFLUSH, self._state.attributes())
        except (termios.error, OSError) as e:
            _warn(f"failed to restore terminal attributes: tcsetattr: {_reason(e)}")

    def __enter__(self):
        return self.enter()

    def __exit__(self, exc_type, exc, tb):
        self.exit()


def run(fn, fd=None):
    """Safe wrapper: enter raw mode, call fn(mode), restore on exit.

    Returns whatever fn returns. Terminal errors from entering raw mode or
    from fn propagate after the terminal has been restored.
    """
    mode = TerminalMode(fd)
    mode.enter()
    try:
        return fn(mode)
    finally:
        mode.exit()


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class Geometry:
    """Terminal size in character cells. Both dimensions are positive."""

    __slots__ = ("rows", "cols")

    def __init__(self, rows, cols):
        if rows <= 0 or cols <= 0:
            raise GeometryUnavailable(
                "window size", f"invalid terminal size {rows}x{cols}"
            )
        self.rows = rows
        self.cols = cols

    def __eq__(self, other):
        if not isinstance(other, Geometry):
            return NotImplemented
        return self.rows == other.rows and self.cols == other.cols

    def __hash__(self):
        return hash((self.rows, self.cols))

    def __repr__(self):
        return f"Geometry(rows={self.rows}, cols={self.cols})"


class CursorPosition:
    """Cursor location as reported by the terminal (1-based)."""

    __slots__ = ("row", "col")

    def __init__(self, row, col):
        self.row = row
        self.col = col

    def __eq__(self, other):
        if not isinstance(other, CursorPosition):
            return NotImplemented
        return self.row == other.row and self.col == other.col

    def __repr__(self):
        return f"CursorPosition(row={self.row}, col={self.col})"


def read_cursor_reply(fd, capacity=REPLY_CAPACITY):
    """
    Read a cursor-position reply from 'fd' one byte at a time, stopping at
    the 'R' terminator, at end of input (the raw-mode read timeout), or when
    'capacity' bytes have been collected. The terminator is not included.
    """
    buf = bytearray()
    while len(buf) < capacity:
        try:
            c = os.read(fd, 1)
        except OSError as e:
            raise GeometryProbeError("read", _reason(e)) from e
        if not c or c == _REPLY_TERMINATOR:
            break
        buf += c
    return bytes(buf)


def parse_cursor_reply(reply):
    """
    Parse 'reply' (a cursor-position report with the 'R' already stripped,
    e.g. b"\\x1b[24;80") into a CursorPosition.
    """
    if not reply.startswith(_REPLY_INTRODUCER):
        raise GeometryProbeError(
            "cursor position", f"reply does not start with ESC [: {reply!r}"
        )

    match = _REPLY_RE.fullmatch(reply, len(_REPLY_INTRODUCER))
    if not match:
        raise GeometryProbeError("cursor position", f"malformed reply: {reply!r}")

    return CursorPosition(int(match.group(1)), int(match.group(2)))


def probe_geometry(fd_in, fd_out):
    """
    Find the terminal size by pushing the cursor to the bottom-right corner
    and asking the terminal where it ended up.
    """
    request = (
        cursor_forward(_PROBE_DISTANCE)
        + cursor_down(_PROBE_DISTANCE)
        + CURSOR_REPORT_REQUEST
    )
    try:
        written = os.write(fd_out, request)
    except OSError as e:
        raise GeometryProbeError("write", _reason(e)) from e
    if written != len(request):
        raise GeometryProbeError(
            "write", f"short write ({written} of {len(request)} bytes)"
        )

    pos = parse_cursor_reply(read_cursor_reply(fd_in))
    return Geometry(pos.row, pos.col)


def resolve_geometry(fd_in=None, fd_out=None, force_probe=False):
    """
    Return the Geometry of the terminal. Asks the OS first and falls back
    on probe_geometry() if that fails or reports a zero size. Requires raw
    mode, since the probe reply has to be read unbuffered.
    """
    if fd_in is None:
        fd_in = sys.stdin.fileno()
    if fd_out is None:
        fd_out = sys.stdout.fileno()

    if not force_probe:
        try:
            size = os.get_terminal_size(fd_out)
        except OSError:
            pass
        else:
            if size.columns > 0 and size.lines > 0:
                return Geometry(size.lines, size.columns)

    return probe_geometry(fd_in, fd_out)


# ---------------------------------------------------------------------------
# Render buffer
# ---------------------------------------------------------------------------


class RenderBuffer:
    """
    Append-only byte accumulator for one frame. Everything appended goes out
    in a single write from flush(), so the terminal never shows a half-drawn
    frame.
    """

    def __init__(self):
        self._buf = bytearray()

    def append(self, data):
        """
        Append 'data' to the end of the buffer. If growing the buffer runs
        out of memory, the append is dropped and the buffer keeps what it had.
        """
        old_len = len(self._buf)
        try:
            self._buf.extend(data)
        except MemoryError:
            del self._buf[old_len:]

    def flush(self, fd):
        """
        Write the whole buffer to 'fd' with one write. Returns the count. A
        short write is an OutputWriteError, same as a failed one.
        """
        try:
            written = os.write(fd, self._buf)
        except OSError as e:
            raise OutputWriteError("write", _reason(e)) from e
        if written != len(self._buf):
            raise OutputWriteError(
                "write", f"short write ({written} of {len(self._buf)} bytes)"
            )
        return written

    def release(self):
        """Drop the buffered bytes and their storage."""
        self._buf = bytearray()

    def getvalue(self):
        return bytes(self._buf)

    def __len__(self):
        return len(self._buf)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


def write_now(fd, data):
    """Write 'data' to 'fd' unbuffered, bypassing any RenderBuffer."""
    try:
        return os.write(fd, data)
    except OSError as e:
        raise OutputWriteError("write", _reason(e)) from e


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


def read_key(fd=None):
    """
    Read one byte from 'fd' and return its value, or None if no byte arrived
    before the raw-mode read timeout. Any other failure is fatal.
    """
    if fd is None:
        fd = sys.stdin.fileno()

    try:
        c = os.read(fd, 1)
    except OSError as e:
        if e.errno in (errno.EAGAIN, errno.EWOULDBLOCK, errno.EINTR):
            return None
        raise InputReadError("read", _reason(e)) from e

    if not c:
        # VMIN=0: the VTIME deadline passed with nothing to read
        return None
    return c[0]
