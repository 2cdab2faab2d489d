"""Tests for configuration loading and experiment settings."""
import json
import os
import tempfile
import unittest

import designs  # noqa: F401

from config_loader import (
    DESIGN_DEFAULT_PATH,
    LAYOUT_DEFAULT_PATH,
    get_base_dir,
    load_design,
    load_layout,
)
from design_validator import validate_design
from errors import ValidationError
from models import ExperimentSettings
from path_utils import file_exists_nonempty, resolve_path


class TestConfigLoader(unittest.TestCase):
    def test_base_dir_exists(self):
        self.assertTrue(os.path.isdir(get_base_dir()))

    def test_bundled_design_is_valid(self):
        design = load_design()
        report = validate_design(design)
        self.assertTrue(report.is_valid, report.messages)

    def test_load_design_relative_path(self):
        design = load_design(os.path.join('configs', 'design.json'))
        self.assertIn('experiment-stimuli', design)

    def test_missing_design_file(self):
        with self.assertRaises(ValidationError) as ctx:
            load_design('/non/existent/design.json')
        self.assertIn('not found', ctx.exception.messages[0])

    def test_design_must_be_json_object(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            bad_json = os.path.join(tmpdir, 'bad.json')
            with open(bad_json, 'w', encoding='utf-8') as f:
                f.write('{not json')
            with self.assertRaises(ValidationError):
                load_design(bad_json)
            a_list = os.path.join(tmpdir, 'list.json')
            with open(a_list, 'w', encoding='utf-8') as f:
                json.dump([1, 2], f)
            with self.assertRaises(ValidationError):
                load_design(a_list)

    def test_layout_has_keys(self):
        layout = load_layout()
        with open(LAYOUT_DEFAULT_PATH, 'r', encoding='utf-8') as f:
            default_layout = json.load(f)
        for key in default_layout:
            self.assertIn(key, layout)
        self.assertEqual(len(layout['option_keys']), 2)
        self.assertIn('advance_key', layout)

    def test_missing_layout(self):
        with self.assertRaises(RuntimeError):
            load_layout('/non/existent/layout.json')

    def test_layout_from_custom_path(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'layout.json')
            with open(path, 'w', encoding='utf-8') as f:
                json.dump({'advance_key': 'return', 'option_keys': ['f', 'j']}, f)
            layout = load_layout(path)
        self.assertEqual(layout['advance_key'], 'return')
        self.assertEqual(layout['option_keys'], ['f', 'j'])
        self.assertNotIn('text_height', layout)

    def test_path_helpers(self):
        self.assertEqual(resolve_path('/abs/path.json'), '/abs/path.json')
        self.assertEqual(resolve_path(os.path.join('configs', 'design.json')), DESIGN_DEFAULT_PATH)
        self.assertFalse(file_exists_nonempty('/non/existent/file.txt'))
        with tempfile.NamedTemporaryFile(mode='w', delete=False, suffix='.txt') as f:
            empty_file = f.name
        try:
            self.assertFalse(file_exists_nonempty(empty_file))
        finally:
            os.unlink(empty_file)


class TestExperimentSettings(unittest.TestCase):
    def test_single_investigator_string_is_one_name(self):
        settings = ExperimentSettings.from_design({
            'primary-investigators': 'Ralph Rose',
            'other-investigators': ['A. One', ' ', 'B. Two'],
        })
        self.assertEqual(settings.primary_investigators, ('Ralph Rose',))
        self.assertEqual(settings.other_investigators, ('A. One', 'B. Two'))

    def test_font_scale(self):
        self.assertEqual(ExperimentSettings.from_design({}).font_scale, 1.0)
        self.assertEqual(ExperimentSettings.from_design({'font-size': '18'}).font_scale, 1.5)
        self.assertEqual(ExperimentSettings.from_design({'font-size': 'big'}).font_scale, 1.0)
        self.assertEqual(ExperimentSettings.from_design({'font-size': '0'}).font_scale, 1.0)

    def test_defaults(self):
        settings = ExperimentSettings.from_design({})
        self.assertEqual(settings.display, 'moving window')
        self.assertEqual(settings.orientation, 'horizontal')
        self.assertEqual(settings.fixation_char, '+')
        self.assertEqual(settings.mask_char, '_')
        self.assertEqual(settings.min_instruction_time, 0.0)
        self.assertEqual(settings.font_name, 'Courier New')

    def test_values_are_normalised(self):
        settings = ExperimentSettings.from_design({
            'display': ' Cumulative ',
            'orientation': 'VERTICAL',
            'fixation-character': ' *# ',
            'masking-character': '-x',
            'min-instruction-time': '1500',
            'text-color': 'navy',
            'primary-investigators': ['A'],
        })
        self.assertEqual(settings.display, 'cumulative')
        self.assertEqual(settings.orientation, 'vertical')
        self.assertEqual(settings.fixation_char, '*')
        self.assertEqual(settings.mask_char, '-')
        self.assertEqual(settings.min_instruction_time, 1500.0)
        self.assertEqual(settings.text_color, 'navy')
        self.assertEqual(settings.primary_investigators, ('A',))


if __name__ == '__main__':
    unittest.main()
