# Copyright (c) 2026 Kilo contributors
# SPDX-License-Identifier: ISC
#
# Shared fixtures for the kilo pytest suite: a fake termios backend and OS
# pipes standing in for the terminal.

import errno
import os
import sys
import termios

import pytest

# Ensure kilo and kiloterm are importable from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))


# ---------------------------------------------------------------------------
# Fake terminal
# ---------------------------------------------------------------------------


def cooked_attributes():
    """Attribute list of a terminal in ordinary line-buffered mode."""
    cc = [b"\x00"] * termios.NCCS
    cc[termios.VMIN] = b"\x01"
    cc[termios.VTIME] = b"\x00"
    return [
        termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON,
        termios.OPOST,
        termios.CREAD,
        termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG,
        termios.B38400,
        termios.B38400,
        cc,
    ]


def _copy(attrs):
    return attrs[:6] + [list(attrs[6])]


class FakeTerminal:
    """
    Stands in for termios.tcgetattr()/tcsetattr(). 'attrs' is the current
    attribute list and 'set_calls' records every (when, attrs) applied.
    """

    def __init__(self):
        self.attrs = cooked_attributes()
        self.set_calls = []
        self.fail_get = False
        self.fail_set = False

    def tcgetattr(self, fd):
        if self.fail_get:
            raise termios.error(errno.ENOTTY, "Inappropriate ioctl for device")
        return _copy(self.attrs)

    def tcsetattr(self, fd, when, attrs):
        if self.fail_set:
            raise termios.error(errno.EIO, "Input/output error")
        self.set_calls.append((when, _copy(attrs)))
        self.attrs = _copy(attrs)


@pytest.fixture
def fake_tty(monkeypatch):
    term = FakeTerminal()
    monkeypatch.setattr(termios, "tcgetattr", term.tcgetattr)
    monkeypatch.setattr(termios, "tcsetattr", term.tcsetattr)
    return term


@pytest.fixture
def fixed_size(monkeypatch):
    """Make the OS report an 80x24 terminal."""
    monkeypatch.setattr(
        os, "get_terminal_size", lambda fd=None: os.terminal_size((80, 24))
    )


# ---------------------------------------------------------------------------
# Pipes
# ---------------------------------------------------------------------------


class Pipe:
    """An OS pipe. Both ends are closed when the test finishes."""

    def __init__(self):
        self.r, self.w = os.pipe()

    def feed(self, data, close=True):
        """Write 'data' to the pipe, by default closing the write end after."""
        os.write(self.w, data)
        if close:
            self.close_write()

    def close_write(self):
        if self.w is not None:
            os.close(self.w)
            self.w = None

    def drain(self):
        """Close the write end and return everything written to the pipe."""
        self.close_write()
        chunks = []
        while True:
            chunk = os.read(self.r, 65536)
            if not chunk:
                return b"".join(chunks)
            chunks.append(chunk)

    def close(self):
        self.close_write()
        os.close(self.r)


@pytest.fixture
def make_pipe():
    pipes = []

    def make():
        p = Pipe()
        pipes.append(p)
        return p

    yield make
    for p in pipes:
        p.close()
