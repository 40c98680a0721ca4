import unittest

import numpy as np

from violin_tutor.fingering import STANDARD_TUNING, FingeringChart
from violin_tutor.note_types import FingerPosition, NoteName
from violin_tutor.note_utils import parse_note_name


class TestFingeringChart(unittest.TestCase):
    def setUp(self):
        self.chart = FingeringChart.build(STANDARD_TUNING, 7)

    def test_frequency_grid(self):
        self.assertEqual(self.chart.string_frequencies.shape, (4, 8))
        self.assertAlmostEqual(self.chart.frequency_at(FingerPosition(2, 0)), 440.0)
        self.assertAlmostEqual(self.chart.frequency_at(FingerPosition(2, 2)), 440.0 * 2 ** (2 / 12))
        self.assertEqual(self.chart.frets_per_string, 7)

    def test_open_strings_and_notes(self):
        for string_index, name in enumerate(["G3", "D4", "A4", "E5"]):
            self.assertIn(FingerPosition(string_index, 0), self.chart.note_positions(parse_note_name(name)))
        # 32 positions, D4 / A4 / E5 each reachable twice
        self.assertEqual(len(self.chart.notes), 29)

    def test_positions_in_construction_order(self):
        d4 = parse_note_name("D4")
        self.assertEqual(
            self.chart.note_positions(d4), (FingerPosition(0, 7), FingerPosition(1, 0))
        )
        self.assertEqual(self.chart.first_found(d4), FingerPosition(0, 7))
        self.assertEqual(self.chart.last_found(d4), FingerPosition(1, 0))
        self.assertEqual(self.chart.position_for(d4), FingerPosition(0, 7))
        self.assertEqual(self.chart.position_for(d4, prefer_higher_fret=True), FingerPosition(1, 0))

    def test_unfingerable_note(self):
        c2 = NoteName(0, 2)
        self.assertEqual(self.chart.note_positions(c2), ())
        self.assertIsNone(self.chart.first_found(c2))
        self.assertIsNone(self.chart.last_found(c2))

    def test_build_is_idempotent(self):
        again = FingeringChart.build(STANDARD_TUNING, 7)
        self.assertEqual(self.chart, again)
        for note in self.chart.notes:
            self.assertEqual(self.chart.note_positions(note), again.note_positions(note))

    def test_chart_is_read_only(self):
        with self.assertRaises(ValueError):
            self.chart.string_frequencies[0, 0] = 1.0

    def test_closest_string_index(self):
        self.assertEqual(self.chart.closest_string_index(440.0, 0), 2)
        self.assertEqual(self.chart.closest_string_index(300.0, 0), 1)
        self.assertEqual(self.chart.closest_string_index(100.0, 0), 0)
        self.assertEqual(self.chart.closest_string_index(2000.0, 7), 3)

    def test_closest_string_tie_picks_lowest(self):
        chart = FingeringChart.build([100.0, 200.0, 300.0, 400.0], 2)
        self.assertEqual(chart.closest_string_index(150.0, 0), 0)
        self.assertEqual(chart.closest_string_index(250.0, 0), 1)

    def test_closest_string_rejects_bad_fret(self):
        with self.assertRaises(ValueError):
            self.chart.closest_string_index(440.0, 8)
        with self.assertRaises(ValueError):
            self.chart.closest_string_index(440.0, -1)

    def test_invalid_tuning(self):
        with self.assertRaises(ValueError):
            FingeringChart.build([196.0, 293.66, 440.0], 7)
        with self.assertRaises(ValueError):
            FingeringChart.build([196.0, 196.0, 440.0, 659.26], 7)
        with self.assertRaises(ValueError):
            FingeringChart.build([0.0, 293.66, 440.0, 659.26], 7)
        with self.assertRaises(ValueError):
            FingeringChart.build(STANDARD_TUNING, -1)

    def test_zero_frets(self):
        chart = FingeringChart.build(STANDARD_TUNING, 0)
        self.assertEqual(len(chart.notes), 4)
        self.assertTrue(np.allclose(chart.string_frequencies[:, 0], STANDARD_TUNING))


if __name__ == "__main__":
    unittest.main()
