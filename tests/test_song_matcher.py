import unittest

from violin_tutor.core.events import EventEmitter, ViolinEventType
from violin_tutor.fingering import STANDARD_TUNING, FingeringChart
from violin_tutor.note_types import FingerPosition
from violin_tutor.note_utils import parse_note_name
from violin_tutor.song import DEFAULT_SONG, SongMatcher, SongScript

A4 = parse_note_name("A4")
B4 = parse_note_name("B4")


class TestSongScript(unittest.TestCase):
    def setUp(self):
        self.chart = FingeringChart.build(STANDARD_TUNING, 7)

    def test_from_note_names(self):
        script = SongScript.from_note_names(self.chart, ["A4", "Bb4", "D4"])
        self.assertEqual(len(script), 3)
        self.assertEqual(script[0].position, FingerPosition(1, 7))
        self.assertEqual(script[1].note_name, parse_note_name("A#4"))
        self.assertEqual(script[2].position, FingerPosition(0, 7))

    def test_prefer_higher_fret(self):
        script = SongScript.from_note_names(self.chart, ["D4"], prefer_higher_fret=True)
        self.assertEqual(script[0].position, FingerPosition(1, 0))

    def test_from_frequencies(self):
        script = SongScript.from_frequencies(self.chart, [440.0, 493.88])
        self.assertEqual([n.note_name for n in script.notes], [A4, B4])
        with self.assertRaises(ValueError):
            SongScript.from_frequencies(self.chart, [0.0])

    def test_default_song_is_fingerable(self):
        script = SongScript.from_note_names(self.chart, DEFAULT_SONG)
        self.assertEqual(script.unfingerable, [])
        for note in script.notes:
            self.assertTrue(self.chart.note_positions(note.note_name))

    def test_unfingerable_note_reported(self):
        script = SongScript.from_note_names(self.chart, ["C2", "A4"])
        self.assertIsNone(script[0].position)
        self.assertEqual(len(script.unfingerable), 1)
        matcher = SongMatcher(script)
        self.assertEqual(matcher.target_display, "not found")
        matcher.jump_to(1)
        self.assertEqual(matcher.target_display, "A4")

    def test_empty_script_rejected(self):
        with self.assertRaises(ValueError):
            SongScript([])


class TestSongMatcher(unittest.TestCase):
    def setUp(self):
        chart = FingeringChart.build(STANDARD_TUNING, 7)
        self.events = EventEmitter()
        self.matcher = SongMatcher(
            SongScript.from_note_names(chart, ["A4", "B4", "A4"]), events=self.events
        )

    def test_cursor_advances_and_wraps(self):
        cursors = [self.matcher.cursor]
        for note in [A4, B4, A4, A4]:
            self.assertTrue(self.matcher.feed(note))
            cursors.append(self.matcher.cursor)
        self.assertEqual(cursors, [0, 1, 2, 0, 1])
        self.assertEqual(self.matcher.stats["correct_notes"], 4)
        self.assertEqual(self.matcher.stats["loops"], 1)

    def test_non_matching_note_holds(self):
        self.assertFalse(self.matcher.feed(B4))
        self.assertFalse(self.matcher.feed(parse_note_name("A5")))
        self.assertFalse(self.matcher.feed(None))
        self.assertEqual(self.matcher.cursor, 0)

    def test_jump_to_always_highlights(self):
        highlighted = []
        self.events.on(ViolinEventType.HIGHLIGHT_TARGET, lambda i, note: highlighted.append(i))
        self.matcher.reset()
        self.matcher.reset()
        self.matcher.jump_to(2)
        self.assertEqual(highlighted, [0, 0, 2])
        self.assertEqual(self.matcher.current.note_name, A4)

    def test_jump_to_out_of_range(self):
        with self.assertRaises(IndexError):
            self.matcher.jump_to(3)
        with self.assertRaises(IndexError):
            self.matcher.jump_to(-1)

    def test_match_emits_events(self):
        matched = []
        highlighted = []
        self.events.on(ViolinEventType.NOTE_MATCHED, lambda i, note: matched.append(i))
        self.events.on(ViolinEventType.HIGHLIGHT_TARGET, lambda i, note: highlighted.append(i))
        self.matcher.feed(A4)
        self.assertEqual(matched, [0])
        self.assertEqual(highlighted, [1])


if __name__ == "__main__":
    unittest.main()
