import unittest

from crapstable.core.craps.round_state import RoundEvent, RoundStateMachine


class TestRoundStateMachine(unittest.TestCase):
    def setUp(self):
        self.machine = RoundStateMachine()

    def assert_consistent(self):
        state = self.machine.state()
        self.assertEqual(state.point_on, state.point_value != 0)
        self.assertEqual(state.point_on, not state.is_comeout)
        if state.point_on:
            self.assertIn(state.point_value, (4, 5, 6, 8, 9, 10))

    def test_starts_on_comeout(self):
        state = self.machine.state()
        self.assertTrue(state.is_comeout)
        self.assertFalse(state.point_on)
        self.assertEqual(state.point_value, 0)
        self.assertFalse(state.roll_in_progress)

    def test_comeout_decisions_keep_the_comeout(self):
        for total, event in ((7, RoundEvent.NATURAL), (11, RoundEvent.NATURAL),
                             (2, RoundEvent.CRAPS), (3, RoundEvent.CRAPS), (12, RoundEvent.CRAPS)):
            self.assertEqual(self.machine.advance(total), event)
            self.assertTrue(self.machine.is_comeout)
            self.assert_consistent()

    def test_every_point_number_establishes_a_point(self):
        for total in (4, 5, 6, 8, 9, 10):
            machine = RoundStateMachine()
            self.assertEqual(machine.advance(total), RoundEvent.POINT_ESTABLISHED)
            self.assertTrue(machine.point_on)
            self.assertEqual(machine.point_value, total)

    def test_point_made_returns_to_comeout(self):
        self.machine.advance(9)
        self.assertEqual(self.machine.advance(9), RoundEvent.POINT_MADE)
        self.assertTrue(self.machine.is_comeout)
        self.assert_consistent()

    def test_seven_out_returns_to_comeout(self):
        self.machine.advance(5)
        self.assertEqual(self.machine.advance(7), RoundEvent.SEVEN_OUT)
        self.assertEqual(self.machine.point_value, 0)
        self.assert_consistent()

    def test_other_totals_are_no_decision(self):
        self.machine.advance(8)
        for total in (2, 3, 4, 5, 6, 9, 10, 11, 12):
            self.assertEqual(self.machine.advance(total), RoundEvent.NO_DECISION)
            self.assertEqual(self.machine.point_value, 8)
            self.assert_consistent()

    def test_ends_round(self):
        self.assertTrue(RoundEvent.SEVEN_OUT.ends_round)
        self.assertTrue(RoundEvent.NATURAL.ends_round)
        self.assertFalse(RoundEvent.POINT_ESTABLISHED.ends_round)
        self.assertFalse(RoundEvent.NO_DECISION.ends_round)

    def test_invalid_total_is_rejected(self):
        self.machine.advance(6)
        with self.assertRaises(ValueError):
            self.machine.advance(13)
        self.assertEqual(self.machine.point_value, 6)

    def test_roll_in_progress_flag(self):
        self.machine.start_roll()
        self.assertTrue(self.machine.state().roll_in_progress)
        self.machine.finish_roll()
        self.assertFalse(self.machine.roll_in_progress)

    def test_reset(self):
        self.machine.advance(4)
        self.machine.start_roll()
        self.machine.reset()
        self.assertTrue(self.machine.is_comeout)
        self.assertFalse(self.machine.roll_in_progress)

    def test_state_to_dict(self):
        self.machine.advance(10)
        self.assertEqual(
            self.machine.state().to_dict(),
            {"pointOn": True, "pointValue": 10, "isComeout": False, "rollInProgress": False},
        )


if __name__ == "__main__":
    unittest.main()
