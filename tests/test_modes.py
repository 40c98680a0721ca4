import unittest

from violin_tutor.core.events import EventEmitter, ViolinEventType
from violin_tutor.modes import (
    TRANSITIONS,
    ButtonEvent,
    Mode,
    ModeMachine,
    button_event_for,
    other_side,
)


class TestModeMachine(unittest.TestCase):
    def test_table_is_complete(self):
        for mode in Mode:
            for event in ButtonEvent:
                self.assertIn((mode, event), TRANSITIONS)

    def test_top_cycles_forward(self):
        machine = ModeMachine()
        seen = [machine.handle(ButtonEvent.TOP) for _ in range(4)]
        self.assertEqual(seen, [Mode.TUNE, Mode.FINGERS, Mode.SONG, Mode.POSITION])

    def test_bottom_cycles_backward(self):
        machine = ModeMachine()
        self.assertEqual(machine.handle(ButtonEvent.BOTTOM), Mode.SONG)
        self.assertEqual(machine.handle(ButtonEvent.BOTTOM), Mode.FINGERS)

    def test_mode_changed_event(self):
        events = EventEmitter()
        changes = []
        events.on(ViolinEventType.MODE_CHANGED, lambda old, new: changes.append((old, new)))
        machine = ModeMachine(events=events)
        machine.handle(ButtonEvent.TOP)
        machine.set_mode(Mode.TUNE)
        self.assertEqual(changes, [(Mode.POSITION, Mode.TUNE), (Mode.TUNE, Mode.TUNE)])


class TestButtons(unittest.TestCase):
    def test_button_names(self):
        self.assertEqual(button_event_for("left", "y"), ButtonEvent.TOP)
        self.assertEqual(button_event_for("left", "x"), ButtonEvent.BOTTOM)
        self.assertEqual(button_event_for("right", "b"), ButtonEvent.TOP)
        self.assertEqual(button_event_for("right", "a"), ButtonEvent.BOTTOM)
        self.assertIsNone(button_event_for("right", "y"))

    def test_other_side(self):
        self.assertEqual(other_side("left"), "right")
        self.assertEqual(other_side("right"), "left")
        with self.assertRaises(ValueError):
            other_side("middle")


class TestEventEmitter(unittest.TestCase):
    def test_listener_errors_are_contained(self):
        events = EventEmitter()
        calls = []

        def broken(*args):
            raise RuntimeError("listener failure")

        events.on(ViolinEventType.NOTE_MATCHED, broken)
        events.on(ViolinEventType.NOTE_MATCHED, lambda *args: calls.append(args))
        events.emit(ViolinEventType.NOTE_MATCHED, 1, "x")
        self.assertEqual(calls, [(1, "x")])

    def test_off_and_clear(self):
        events = EventEmitter()
        calls = []
        listener = calls.append
        events.on(ViolinEventType.POSE_UPDATED, listener)
        events.off(ViolinEventType.POSE_UPDATED, listener)
        events.emit(ViolinEventType.POSE_UPDATED, 1)
        events.on(ViolinEventType.POSE_UPDATED, listener)
        events.clear()
        events.emit(ViolinEventType.POSE_UPDATED, 2)
        self.assertEqual(calls, [])


if __name__ == "__main__":
    unittest.main()
