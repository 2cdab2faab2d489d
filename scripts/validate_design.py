"""Check a design document and print every problem found.

Usage: python scripts/validate_design.py [path/to/design.json]
Exit status is 0 for a valid design, 1 otherwise.
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from psychopy import logging  # noqa: E402

from config_loader import load_design  # noqa: E402
from design_validator import validate_design  # noqa: E402
from errors import ValidationError  # noqa: E402
from sequence_builder import SequenceBuilder  # noqa: E402


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    logging.console.setLevel(logging.ERROR)
    try:
        design = load_design(argv[0] if argv else None)
    except ValidationError as e:
        for message in e.messages:
            print(f'✗ {message}')
        return 1

    report = validate_design(design)
    if not report.is_valid:
        for message in report.messages:
            print(f'✗ {message}')
        print(f'{len(report.messages)} problem(s) found')
        return 1

    builder = SequenceBuilder(design)
    print(f'✓ Design is valid: {len(builder.practice_items())} practice item(s), '
          f'{len(builder.experiment_items())} experiment item(s)')
    return 0


if __name__ == '__main__':
    sys.exit(main())
