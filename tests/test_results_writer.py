import csv
import json
import os
import tempfile
import unittest

import designs  # noqa: F401

from models import ExperimentSettings, Region, ResponseLog, ResponseRecord
from results_writer import CSV_HEADER, ResultsWriter


def make_log():
    log = ResponseLog()
    log.append(ResponseRecord(
        item_id='I1', phase='practice', sequence_number=1,
        regions=(Region(1, 'A', -1), Region(2, 'B', 0)),
        reveal_times=(100.0, 350.0), end_time=600.0,
        chosen_option=1, response_time=900.0, feedback='Right!',
        option_order=(1, 2), tags=('t',), conditions=('practice',),
    ))
    log.append(ResponseRecord(
        item_id='I2', phase='experiment', sequence_number=2,
        regions=(Region(1, 'C', None),),
        reveal_times=(1000.0,), end_time=1250.5,
        conditions=('s1', 'g1'),
    ))
    return log


class TestResultsWriter(unittest.TestCase):
    def test_save_writes_region_rows_and_meta(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            writer = ResultsWriter(output_dir=tmpdir)
            csv_path, json_path = writer.save(
                {'participant_id': 'T001'}, make_log(), ExperimentSettings()
            )
            self.assertTrue(os.path.exists(csv_path))
            self.assertTrue(os.path.exists(json_path))

            with open(csv_path, newline='', encoding='utf-8') as f:
                rows = list(csv.reader(f))
            self.assertEqual(rows[0], CSV_HEADER)
            self.assertEqual(len(rows), 4)
            first = dict(zip(CSV_HEADER, rows[1]))
            self.assertEqual(first['participant_id'], 'T001')
            self.assertEqual(first['location'], '-1')
            self.assertEqual(first['reveal_time'], '100.000')
            self.assertEqual(first['reading_time'], '250.000')
            self.assertEqual(first['chosen_option'], '1')
            self.assertEqual(first['feedback'], 'Right!')
            last = dict(zip(CSV_HEADER, rows[3]))
            self.assertEqual(last['location'], '')
            self.assertEqual(last['reading_time'], '250.500')
            self.assertEqual(last['conditions'], 's1;g1')
            self.assertEqual(last['chosen_option'], '')

            with open(json_path, encoding='utf-8') as f:
                meta = json.load(f)
            self.assertEqual(meta['participant']['participant_id'], 'T001')
            self.assertEqual(meta['n_items'], 2)
            self.assertEqual(meta['n_practice'], 1)
            self.assertEqual(meta['n_answered'], 1)
            self.assertEqual(meta['display'], 'moving window')

    def test_empty_log(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            csv_path, _ = ResultsWriter(output_dir=tmpdir).save({}, ResponseLog(), ExperimentSettings())
            with open(csv_path, newline='', encoding='utf-8') as f:
                self.assertEqual(len(list(csv.reader(f))), 1)


if __name__ == '__main__':
    unittest.main()
