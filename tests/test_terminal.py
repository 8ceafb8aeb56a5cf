import os
import selectors
import signal
import unittest
from unittest import mock

from svi.config import Config
from svi.terminal import ANSI_CAPABILITIES, Terminal, TerminalError, parse_cursor_report
from svi.ui.decoder import Key, KeyEvent, ResizeEvent


class CursorReportTests(unittest.TestCase):
    def test_parse(self):
        self.assertEqual(parse_cursor_report(b"\x1b[24;80R"), (80, 24))
        self.assertEqual(parse_cursor_report(b"junk\x1b[5;7R"), (7, 5))

    def test_rejects_bad_replies(self):
        self.assertIsNone(parse_cursor_report(b"\x1b[0;80R"))
        self.assertIsNone(parse_cursor_report(b"\x1b[24;80"))
        self.assertIsNone(parse_cursor_report(b""))


class PipeTestCase(unittest.TestCase):
    """A Terminal wired to pipes instead of a tty."""

    def setUp(self):
        self.in_r, self.in_w = os.pipe()
        self.out_r, self.out_w = os.pipe()
        os.set_blocking(self.in_r, False)
        self.fds = [self.in_r, self.in_w, self.out_r, self.out_w]
        self.term = Terminal(Config(fallback_columns=100, fallback_lines=30),
                             stdin_fd=self.in_r, stdout_fd=self.out_w)

    def tearDown(self):
        self.term.close()
        for fd in self.fds:
            try:
                os.close(fd)
            except OSError:
                pass

    def close_input(self):
        os.close(self.in_w)
        self.fds.remove(self.in_w)


class SessionTests(PipeTestCase):
    def test_open_refuses_non_terminal(self):
        with self.assertRaises(TerminalError):
            self.term.open()
        # nothing was changed, so closing again is harmless
        self.term.close()
        self.term.close()

    def test_context_manager_refuses_non_terminal(self):
        with self.assertRaises(TerminalError):
            with self.term:
                self.fail("session should not start")


class InputTests(PipeTestCase):
    def test_read_byte(self):
        os.write(self.in_w, b"q")
        self.assertEqual(self.term.read_byte(), ord("q"))
        self.assertIsNone(self.term.read_byte())

    def test_end_of_input_is_fatal(self):
        self.close_input()
        with self.assertRaises(TerminalError) as cm:
            self.term.read_byte()
        self.assertEqual(cm.exception.operation, "read")

    def attach_wakeup_pipe(self):
        wake_r, wake_w = os.pipe()
        os.set_blocking(wake_r, False)
        self.fds.append(wake_w)
        self.term._wakeup_r = wake_r
        return wake_w

    def test_drain_wakeup(self):
        wake_w = self.attach_wakeup_pipe()
        os.write(wake_w, bytes([signal.SIGWINCH]))
        self.assertTrue(self.term._drain_wakeup())
        self.assertFalse(self.term._drain_wakeup())
        os.write(wake_w, bytes([signal.SIGINT]))
        self.assertFalse(self.term._drain_wakeup())

    def test_resize_is_reported_before_a_pending_key(self):
        wake_w = self.attach_wakeup_pipe()
        selector = selectors.DefaultSelector()
        selector.register(self.in_r, selectors.EVENT_READ, "input")
        selector.register(self.term._wakeup_r, selectors.EVENT_READ, "resize")
        self.term._selector = selector

        os.write(self.in_w, b"a\x1b[A")
        os.write(wake_w, bytes([signal.SIGWINCH]))
        self.assertEqual(self.term.wait_event(), ResizeEvent())
        self.assertEqual(self.term.wait_event(), KeyEvent(Key.CHAR, "a"))
        self.assertEqual(self.term.wait_event(), KeyEvent(Key.UP))

    def test_escape_then_key_in_one_read(self):
        selector = selectors.DefaultSelector()
        selector.register(self.in_r, selectors.EVENT_READ, "input")
        self.term._selector = selector

        os.write(self.in_w, b"\x1bj")
        self.assertEqual(self.term.wait_event(), KeyEvent(Key.ESCAPE))
        self.assertEqual(self.term.wait_event(), KeyEvent(Key.CHAR, "j"))


class SizeTests(PipeTestCase):
    def test_falls_back_to_config(self):
        with mock.patch("svi.terminal.os.get_terminal_size", side_effect=OSError), \
                mock.patch.object(Terminal, "_query_cursor_report", return_value=None):
            self.assertEqual(self.term.size(), (100, 30))

    def test_uses_cursor_report(self):
        with mock.patch("svi.terminal.os.get_terminal_size", side_effect=OSError), \
                mock.patch.object(Terminal, "_query_cursor_report", return_value=(132, 43)):
            self.assertEqual(self.term.size(), (132, 43))

    def test_cursor_report_query(self):
        self.term._caps = dict(ANSI_CAPABILITIES)
        os.write(self.in_w, b"\x1b[43;132R")
        self.assertEqual(self.term._query_cursor_report(), (132, 43))
        self.assertEqual(os.read(self.out_r, 64), b"\x1b7\x1b[999;999H\x1b[6n\x1b8")

    def test_cursor_report_timeout(self):
        self.term.config.size_query_timeout = 0.05
        self.term._caps = dict(ANSI_CAPABILITIES)
        self.assertIsNone(self.term._query_cursor_report())

    def test_keys_typed_during_query_are_kept(self):
        self.term._caps = dict(ANSI_CAPABILITIES)
        os.write(self.in_w, b"jk\x1b[43;132Rl")
        self.assertEqual(self.term._query_cursor_report(), (132, 43))
        self.assertEqual(self.term.decoder.read_key(), KeyEvent(Key.CHAR, "j"))
        self.assertEqual(self.term.decoder.read_key(), KeyEvent(Key.CHAR, "k"))
        self.assertEqual(self.term.decoder.read_key(), KeyEvent(Key.CHAR, "l"))

    def test_keys_typed_before_timeout_are_kept(self):
        self.term.config.size_query_timeout = 0.05
        self.term._caps = dict(ANSI_CAPABILITIES)
        os.write(self.in_w, b"x")
        self.assertIsNone(self.term._query_cursor_report())
        self.assertTrue(self.term.decoder.has_pending())
        self.assertEqual(self.term.decoder.read_key(), KeyEvent(Key.CHAR, "x"))


class OutputTests(PipeTestCase):
    def setUp(self):
        super().setUp()
        self.term._caps = dict(ANSI_CAPABILITIES)

    def test_ansi_sequences(self):
        self.term.move(2, 3)
        self.term.set_scroll_region(0, 22)
        self.term.clear_line()
        self.term.write("hi")
        self.term.flush()
        self.assertEqual(os.read(self.out_r, 64), b"\x1b[4;3H\x1b[1;23r\x1b[Khi")

    def test_scroll_capabilities(self):
        self.assertTrue(self.term.can_scroll)
        del self.term._caps["csr"]
        self.assertFalse(self.term.can_scroll)

    def test_flush_empties_the_output_buffer(self):
        self.term.write("a")
        self.term.flush()
        self.term.flush()
        self.assertEqual(os.read(self.out_r, 64), b"a")


if __name__ == "__main__":
    unittest.main()
