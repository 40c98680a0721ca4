import math
import unittest

from violin_tutor.note_types import NoteName
from violin_tutor.note_utils import (
    cents_offset,
    format_note_name,
    frequency_to_midi,
    get_note_name,
    midi_to_frequency,
    midi_to_note_name,
    note_name_for_frequency,
    parse_note_name,
)


class TestScientificPitchNotation(unittest.TestCase):
    def test_middle_c(self):
        # Middle C (C4) should be ~261.63 Hz
        self.assertEqual(get_note_name(261.63), "C4")

    def test_a4(self):
        self.assertEqual(get_note_name(440.0), "A4")

    def test_octave_transitions(self):
        # Test octave transitions (B3 -> C4)
        self.assertEqual(get_note_name(246.94), "B3")
        self.assertEqual(get_note_name(261.63), "C4")

    def test_sharps_and_flats(self):
        self.assertEqual(get_note_name(277.18), "C#4")
        self.assertEqual(get_note_name(311.13), "D#4")

        self.assertEqual(get_note_name(277.18, use_flats=True), "Db4")
        self.assertEqual(get_note_name(311.13, use_flats=True), "Eb4")

        # Naturals never get respelled
        self.assertEqual(get_note_name(329.63, use_flats=True), "E4")
        self.assertEqual(get_note_name(493.88, use_flats=True), "B4")

    def test_invalid_frequency(self):
        self.assertEqual(get_note_name(0), "---")
        self.assertEqual(get_note_name(-440.0), "---")


class TestPitchMath(unittest.TestCase):
    def test_frequency_to_midi(self):
        self.assertAlmostEqual(frequency_to_midi(440.0), 69.0)
        self.assertAlmostEqual(frequency_to_midi(880.0), 81.0)
        self.assertAlmostEqual(frequency_to_midi(432.0, reference_frequency=432.0), 69.0)
        self.assertAlmostEqual(midi_to_frequency(60), 261.6255653, places=6)

    def test_equal_tempered_notes_have_zero_offset(self):
        for k in range(-36, 37):
            f = 440.0 * 2 ** (k / 12)
            self.assertAlmostEqual(cents_offset(f), 0.0, places=9)
            expected = NoteName(pitch_class=(69 + k) % 12, octave=(69 + k) // 12 - 1)
            self.assertEqual(midi_to_note_name(frequency_to_midi(f)), expected)

    def test_offset_is_fraction_of_semitone(self):
        self.assertAlmostEqual(cents_offset(440.0 * 2 ** (0.25 / 12)), 0.25)
        self.assertAlmostEqual(cents_offset(440.0 * 2 ** (-0.25 / 12)), -0.25)
        self.assertAlmostEqual(cents_offset(440.0 * 2 ** (1.4 / 12)), 0.4)
        self.assertAlmostEqual(cents_offset(440.0 * 2 ** (1.6 / 12)), -0.4)

    def test_offset_range(self):
        for step in range(-200, 200):
            offset = cents_offset(440.0 * 2 ** (step / 100 / 12 + 0.0001))
            self.assertGreaterEqual(offset, -0.5)
            self.assertLess(offset, 0.5)

    def test_invalid_frequencies_return_none(self):
        for bad in (0, -1.0, float("nan"), float("inf"), "440"):
            self.assertIsNone(frequency_to_midi(bad))
            self.assertIsNone(cents_offset(bad))
            self.assertIsNone(note_name_for_frequency(bad))
        self.assertIsNone(midi_to_note_name(None))
        self.assertIsNone(midi_to_note_name(math.nan))

    def test_midi_rounding(self):
        self.assertEqual(midi_to_note_name(60.4), NoteName(0, 4))
        self.assertEqual(midi_to_note_name(60.5), NoteName(1, 4))
        self.assertEqual(midi_to_note_name(59.6), NoteName(0, 4))
        self.assertEqual(midi_to_note_name(11), NoteName(11, -1))

    def test_parse_note_name(self):
        self.assertEqual(parse_note_name("A4"), NoteName(9, 4))
        self.assertEqual(parse_note_name("Bb4"), NoteName(10, 4))
        self.assertEqual(parse_note_name("c#5"), NoteName(1, 5))
        self.assertEqual(parse_note_name("Cb4"), NoteName(11, 3))
        self.assertEqual(parse_note_name("B#3"), NoteName(0, 4))
        self.assertEqual(parse_note_name("G", default_octave=3), NoteName(7, 3))
        with self.assertRaises(ValueError):
            parse_note_name("A")
        with self.assertRaises(ValueError):
            parse_note_name("H2")

    def test_note_name_value(self):
        note = NoteName(9, 4)
        self.assertEqual(note.midi, 69)
        self.assertEqual(str(note), "A4")
        self.assertEqual(format_note_name(NoteName(10, 3), use_flats=True), "Bb3")
        self.assertEqual(note, NoteName(9, 4))
        self.assertNotEqual(note, NoteName(9, 5))


if __name__ == "__main__":
    unittest.main()
