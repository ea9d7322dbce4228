import argparse
import os
import sys

from typing import Optional, Sequence

__all__ = [
    "get_parser",
    "parse_args"
]


def get_parser() -> argparse.ArgumentParser:
    program = os.path.basename(sys.argv[0])
    parser = argparse.ArgumentParser(prog=program, description="LSO Kneeboard grading engine",
                                     epilog='If unsure about the parameters, please check the documentation.')
    parser.add_argument('-c', '--config', help='Path to configuration', default='config')
    subparsers = parser.add_subparsers(dest='command', required=True)

    shorthand = subparsers.add_parser('shorthand', help='Replay a grading script and print the LSO comment')
    shorthand.add_argument('script', help='YAML file with the grading steps')

    save = subparsers.add_parser('save', help='Replay a grading script and store the grade')
    save.add_argument('script', help='YAML file with the grading steps')
    save.add_argument('-l', '--lso', help='Pilot id of the grading LSO', required=True)
    save.add_argument('-a', '--announce', action='store_true', help='Announce the grade in the squadron channel')

    phases = subparsers.add_parser('phases', help='Print the pad layout per approach phase')
    phases.add_argument('-p', '--phase', help='Only print this phase', default=None)
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return get_parser().parse_args(argv)
