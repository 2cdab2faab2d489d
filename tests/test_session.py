import random
import unittest

from designs import FakeClock, design, group, item, single_item_design, stimuli_set

import directives
from errors import NotReadyError
from models import InputEvent
from screens import ADVANCE, CONTINUE, InstructionsScreen, ItemScreen, TitleScreen
from session import FINISHED, NOT_STARTED, RUNNING, ExperimentSession


def started(doc, start_time=0.0, rng=None):
    session = ExperimentSession(doc, clock=FakeClock(start_time), rng=rng or random.Random(0))
    report = session.validate()
    assert report.is_valid, report.messages
    session.start()
    return session


class TestLifecycle(unittest.TestCase):
    def test_start_requires_validation(self):
        session = ExperimentSession(single_item_design(), clock=FakeClock())
        self.assertEqual(session.state, NOT_STARTED)
        with self.assertRaises(NotReadyError):
            session.start()

    def test_invalid_design_refuses_to_start(self):
        session = ExperimentSession({'title': 'Missing stimuli'}, clock=FakeClock())
        report = session.validate()
        self.assertFalse(report.is_valid)
        self.assertTrue(any('experiment-stimuli' in m for m in report.messages))
        with self.assertRaises(NotReadyError):
            session.start()
        self.assertEqual(session.state, NOT_STARTED)

    def test_input_before_start_is_rejected(self):
        session = ExperimentSession(single_item_design(), clock=FakeClock())
        session.validate()
        with self.assertRaises(NotReadyError):
            session.handle_input(InputEvent.advance(1.0))
        with self.assertRaises(NotReadyError):
            session.finish()

    def test_double_start_is_rejected(self):
        session = started(single_item_design())
        with self.assertRaises(NotReadyError):
            session.start()

    def test_finish_is_idempotent(self):
        session = started(single_item_design())
        log = session.finish()
        self.assertIs(session.finish(), log)
        self.assertEqual(session.state, FINISHED)
        ends = [d for d in session.sink.drain() if d.action == directives.END]
        self.assertEqual(len(ends), 1)
        with self.assertRaises(NotReadyError):
            session.handle_input(InputEvent.advance(5.0))

    def test_start_time_comes_from_clock(self):
        session = started(single_item_design(), start_time=42.0)
        self.assertEqual(session.start_time, 42.0)
        self.assertEqual(session.state, RUNNING)


class TestRunList(unittest.TestCase):
    def test_run_list_order(self):
        doc = single_item_design()
        doc['instruction-screens'] = ['before practice']
        doc['practice-stimuli'] = {'items': [item('P1', 'A')]}
        doc['post-practice-instruction-screens'] = ['after practice']
        doc['post-experiment-instruction-screens'] = ['thanks']
        session = started(doc)
        kinds = [type(s).__name__ for s in session.run_list]
        self.assertEqual(kinds, ['TitleScreen', 'InstructionsScreen', 'ItemScreen',
                                 'InstructionsScreen', 'ItemScreen', 'InstructionsScreen'])
        self.assertEqual([s.phase for s in session.run_list if isinstance(s, ItemScreen)],
                         ['practice', 'experiment'])
        self.assertIsInstance(session.run_list[0], TitleScreen)
        for current, following in zip(session.run_list, session.run_list[1:]):
            self.assertIs(current.next_screen, following)
        self.assertIsNone(session.run_list[-1].next_screen)

    def test_title_screen_carries_investigators(self):
        doc = single_item_design()
        doc.update({'title': ' My study ', 'primary-investigators': ['A. One', 'B. Two']})
        session = started(doc)
        title = session.sink.drain()[0]
        self.assertEqual(title.action, directives.SHOW_TITLE)
        self.assertEqual(title.get('title'), 'My study')
        self.assertEqual(title.get('primary_investigators'), 'A. One, B. Two')

    def test_only_one_screen_active(self):
        session = started(single_item_design())
        self.assertIsInstance(session.current_screen, TitleScreen)
        session.handle_input(InputEvent.advance(1.0))
        self.assertIsInstance(session.current_screen, ItemScreen)


class TestInstructions(unittest.TestCase):
    def test_min_instruction_time_drops_early_advances(self):
        doc = single_item_design()
        doc['instruction-screens'] = [{'instruction-screen': 'Read this'}]
        doc['min-instruction-time'] = 2000
        session = started(doc)
        session.handle_input(InputEvent.advance(1.0))
        self.assertIsInstance(session.current_screen, InstructionsScreen)
        self.assertEqual(session.handle_input(InputEvent.advance(2.0)), CONTINUE)
        self.assertEqual(session.handle_input(InputEvent.advance(2.999)), CONTINUE)
        self.assertIsInstance(session.current_screen, InstructionsScreen)
        self.assertEqual(session.handle_input(InputEvent.advance(3.0)), ADVANCE)
        self.assertIsInstance(session.current_screen, ItemScreen)

    def test_select_inputs_do_not_dismiss_screens(self):
        doc = single_item_design()
        doc['instruction-screens'] = ['Read this']
        session = started(doc)
        self.assertEqual(session.handle_input(InputEvent.select(0, 1.0)), CONTINUE)
        self.assertIsInstance(session.current_screen, TitleScreen)
        session.handle_input(InputEvent.advance(1.0))
        self.assertEqual(session.handle_input(InputEvent.select(1, 2.0)), CONTINUE)
        self.assertIsInstance(session.current_screen, InstructionsScreen)


class TestScenarios(unittest.TestCase):
    def test_moving_window_single_item(self):
        doc = single_item_design('A|B|{C}|D')
        doc['display'] = 'moving window'
        session = started(doc, start_time=100.0)

        session.handle_input(InputEvent.advance(100.5))
        for n in range(4):
            session.handle_input(InputEvent.advance(101.0 + n * 0.3))
        self.assertEqual(len(session.log), 0)
        self.assertEqual(session.handle_input(InputEvent.advance(103.0)), ADVANCE)

        self.assertTrue(session.is_finished)
        self.assertEqual(len(session.log), 1)
        record = session.log[0]
        self.assertEqual(record.item_id, 'I1')
        self.assertEqual(len(record.reveal_times), 4)
        self.assertTrue(all(a < b for a, b in zip(record.reveal_times, record.reveal_times[1:])))
        self.assertAlmostEqual(record.reveal_times[0], 1000.0)
        locations = {r.index: r.location for r in record.regions}
        self.assertEqual((locations[2], locations[3], locations[4]), (-1, 0, 1))

    def test_prompt_with_named_feedback(self):
        doc = single_item_design('A|B', prompt='Correct?', options=[
            {'option': {'text': 'Yes', 'feedback-option': 'correct'}},
            {'option': {'text': 'No'}},
        ])
        doc['feedback-options'] = [
            {'feedback-option': {'name': 'correct', 'text': 'Right!', 'color': 'green'}}
        ]
        session = started(doc)
        for t in (1.0, 2.0, 3.0, 4.0):
            session.handle_input(InputEvent.advance(t))
        session.handle_input(InputEvent.select(0, 5.0))
        shown = [d for d in session.sink.drain() if d.action == directives.SHOW_FEEDBACK]
        self.assertEqual(shown[-1].get('text'), 'Right!')
        session.handle_input(InputEvent.advance(6.0))

        record = session.log[0]
        self.assertEqual(record.chosen_option, 1)
        self.assertEqual(record.feedback, 'Right!')
        self.assertTrue(session.is_finished)

    def test_missing_experiment_section(self):
        doc = {'title': 'x', 'practice-stimuli': {'items': [item('P1', 'A')]}}
        session = ExperimentSession(doc, clock=FakeClock())
        report = session.validate()
        self.assertFalse(report.is_valid)
        self.assertTrue(any('experiment-stimuli' in m for m in report.messages))
        with self.assertRaises(NotReadyError):
            session.start()


class TestResponseLog(unittest.TestCase):
    def test_records_in_completion_order_with_labels(self):
        doc = design([stimuli_set([
            group([item('a1', 'A|B', tags=['t']), item('a2', 'C')], name='g1'),
        ], name='s1')])
        session = started(doc)
        session.handle_input(InputEvent.advance(1.0))
        t = 2.0
        while session.is_running:
            session.handle_input(InputEvent.advance(t))
            t += 0.5
        self.assertEqual([r.item_id for r in session.log], ['a1', 'a2'])
        self.assertEqual([r.sequence_number for r in session.log], [1, 2])
        self.assertEqual(session.log[0].tags, ('t',))
        self.assertEqual(session.log[0].conditions, ('s1', 'g1'))
        with self.assertRaises(TypeError):
            session.log.append('not a record')

    def test_sequence_fixed_at_start(self):
        items = [item(f'i{n}', 'A') for n in range(6)]
        doc = design([stimuli_set([group(items)], order='random')])
        session = started(doc, rng=random.Random(11))
        before = [s.item.id for s in session.run_list if isinstance(s, ItemScreen)]
        session.handle_input(InputEvent.advance(1.0))
        after = [s.item.id for s in session.run_list if isinstance(s, ItemScreen)]
        self.assertEqual(before, after)


if __name__ == '__main__':
    unittest.main()
