"""ResultsWriter: persists a ResponseLog as a per-region CSV plus a session JSON."""
from __future__ import annotations

import csv
import json
import os
from datetime import datetime
from typing import Optional

from psychopy import logging

from config_loader import get_output_dir
from models import ExperimentSettings, ResponseLog
from spr_types import ParticipantInfo

DATA_DIR = get_output_dir()

CSV_HEADER = [
    'participant_id', 'phase', 'sequence', 'item_id', 'conditions', 'tags',
    'region', 'text', 'location', 'reveal_time', 'reading_time',
    'chosen_option', 'response_time', 'feedback',
]


def _fmt(value: Optional[float]) -> str:
    return '' if value is None else f'{value:.3f}'


class ResultsWriter:
    """Writes experiment results as flat tables.

    One CSV row per region of every completed item, so reading times can be
    analysed directly; a JSON file holds participant and session metadata.
    """

    def __init__(self, output_dir: str | None = None) -> None:
        """Initialize results writer.

        Args:
            output_dir: Custom output directory (defaults to DATA_DIR)
        """
        self.output_dir = output_dir or DATA_DIR

    def save(
        self,
        participant_info: ParticipantInfo,
        log: ResponseLog,
        settings: ExperimentSettings,
    ) -> tuple[str, str]:
        """Persist results.

        Returns:
            (csv_path, json_path)
        """
        ts = datetime.now().strftime('%Y%m%d_%H%M%S')
        os.makedirs(self.output_dir, exist_ok=True)
        pid = participant_info.get('participant_id', '')
        csv_path = os.path.join(self.output_dir, f'spr_results_{pid}_{ts}.csv')

        with open(csv_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(CSV_HEADER)
            for record in log:
                reading_times = record.reading_times()
                for region, reveal, reading in zip(
                    record.regions, record.reveal_times, reading_times
                ):
                    writer.writerow([
                        pid, record.phase, record.sequence_number, record.item_id,
                        ';'.join(record.conditions), ';'.join(record.tags),
                        region.index, region.text,
                        '' if region.location is None else region.location,
                        _fmt(reveal), _fmt(reading),
                        '' if record.chosen_option is None else record.chosen_option,
                        _fmt(record.response_time),
                        record.feedback or '',
                    ])

        answered = [r for r in log if r.chosen_option is not None]
        meta = {
            'participant': dict(participant_info),
            'time_created': datetime.now().isoformat(timespec='seconds'),
            'title': settings.title,
            'display': settings.display,
            'orientation': settings.orientation,
            'n_items': len(log),
            'n_practice': sum(1 for r in log if r.phase == 'practice'),
            'n_experiment': sum(1 for r in log if r.phase == 'experiment'),
            'n_answered': len(answered),
            'items': [
                {
                    'item_id': r.item_id,
                    'phase': r.phase,
                    'option_order': list(r.option_order),
                    'chosen_option': r.chosen_option,
                    'feedback': r.feedback,
                }
                for r in log
            ],
        }
        json_path = os.path.join(self.output_dir, f'spr_session_{pid}_{ts}.json')
        with open(json_path, 'w', encoding='utf-8') as mf:
            json.dump(meta, mf, ensure_ascii=False, indent=2)
        logging.info(f'Results saved to {csv_path}')
        return csv_path, json_path
