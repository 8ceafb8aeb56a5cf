import unittest

from svi.ui.decoder import Decoder, Key, KeyEvent, ctrl, decode_byte
from tests.fakes import decode_all


class SequenceTests(unittest.TestCase):
    def test_escape_sequences(self):
        cases = {
            b"\x1b[A": Key.UP,
            b"\x1b[B": Key.DOWN,
            b"\x1b[C": Key.RIGHT,
            b"\x1b[D": Key.LEFT,
            b"\x1bOA": Key.UP,
            b"\x1bOB": Key.DOWN,
            b"\x1b[H": Key.HOME,
            b"\x1b[F": Key.END,
            b"\x1bOH": Key.HOME,
            b"\x1bOF": Key.END,
            b"\x1b[1~": Key.HOME,
            b"\x1b[7~": Key.HOME,
            b"\x1b[4~": Key.END,
            b"\x1b[8~": Key.END,
            b"\x1b[2~": Key.INSERT,
            b"\x1b[3~": Key.DELETE,
            b"\x1b[5~": Key.PAGE_UP,
            b"\x1b[6~": Key.PAGE_DOWN,
        }
        for data, key in cases.items():
            with self.subTest(data=data):
                self.assertEqual(decode_all(data), [KeyEvent(key)])

    def test_sequences_back_to_back(self):
        self.assertEqual(decode_all(b"\x1b[A\x1b[6~j"),
                         [KeyEvent(Key.UP), KeyEvent(Key.PAGE_DOWN), KeyEvent(Key.CHAR, "j")])

    def test_lone_escape(self):
        self.assertEqual(decode_all(b"\x1b"), [KeyEvent(Key.ESCAPE)])

    def test_escape_then_ordinary_key_keeps_the_key(self):
        self.assertEqual(decode_all(b"\x1bx"), [KeyEvent(Key.ESCAPE), KeyEvent(Key.CHAR, "x")])
        self.assertEqual(decode_all(b"\x1b:"), [KeyEvent(Key.ESCAPE), KeyEvent(Key.CHAR, ":")])

    def test_double_escape(self):
        self.assertEqual(decode_all(b"\x1b\x1b"), [KeyEvent(Key.ESCAPE), KeyEvent(Key.ESCAPE)])

    def test_unknown_sequences_are_dropped(self):
        for data in (b"\x1b[Zq", b"\x1b[9~q", b"\x1bO5q",
                     b"\x1b[15~q", b"\x1b[24~q", b"\x1b[1;5Cq", b"\x1b[1;2Aq", b"\x1b[?25hq"):
            with self.subTest(data=data):
                self.assertEqual(decode_all(data), [KeyEvent(Key.CHAR, "q")])

    def test_sequence_cut_by_another_escape(self):
        self.assertEqual(decode_all(b"\x1b[1\x1b[A"), [KeyEvent(Key.UP)])

    def test_pushed_bytes_come_first(self):
        data = iter(b"b")
        decoder = Decoder(lambda: next(data, None))
        decoder.push(b"\x1b[A")
        self.assertTrue(decoder.has_pending())
        self.assertEqual(decoder.read_key(), KeyEvent(Key.UP))
        self.assertEqual(decoder.read_key(), KeyEvent(Key.CHAR, "b"))
        self.assertIsNone(decoder.read_key())

    def test_truncated_sequence_is_dropped(self):
        self.assertEqual(decode_all(b"\x1b["), [])
        self.assertEqual(decode_all(b"\x1b[5"), [])


class SingleByteTests(unittest.TestCase):
    def test_special_bytes(self):
        self.assertEqual(decode_byte(ord("\r")), KeyEvent(Key.ENTER))
        self.assertEqual(decode_byte(ord("\n")), KeyEvent(Key.ENTER))
        self.assertEqual(decode_byte(ord("\t")), KeyEvent(Key.TAB))
        self.assertEqual(decode_byte(127), KeyEvent(Key.BACKSPACE))
        self.assertEqual(decode_byte(8), KeyEvent(Key.BACKSPACE))

    def test_control_keys(self):
        self.assertEqual(ctrl("b"), 2)
        self.assertEqual(ctrl("F"), 6)
        self.assertEqual(decode_byte(ctrl("b")), KeyEvent(Key.CTRL, "b"))
        self.assertEqual(decode_byte(ctrl("f")), KeyEvent(Key.CTRL, "f"))
        self.assertEqual(decode_byte(ctrl("l")), KeyEvent(Key.CTRL, "l"))

    def test_printable_and_high_bytes(self):
        self.assertEqual(decode_byte(ord("a")), KeyEvent(Key.CHAR, "a"))
        self.assertEqual(decode_byte(0xe9), KeyEvent(Key.CHAR, "\xe9"))

    def test_nothing_available(self):
        decoder = Decoder(lambda: None)
        self.assertIsNone(decoder.read_key())
        self.assertFalse(decoder.has_pending())


if __name__ == "__main__":
    unittest.main()
