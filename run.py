from __future__ import annotations

# Default imports
import asyncio
import discord
import logging
import os
import sys
import time

from datetime import datetime
from logging.handlers import RotatingFileHandler

# LSO Kneeboard imports
from core import Node, YAMLError, FatalException, PluginError, load_language, utils
from core.commandline import parse_args
from plugins.lsograding import (ApproachPhase, GradeStateMachine, get_buttons_for_phase, get_categories_for_phase,
                                missing_fields)
from plugins.lsograding.plugin import LSOGrading
from plugins.lsograding.replay import load_script, replay
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text
from version import __version__

LOGLEVEL = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
    'FATAL': logging.FATAL
}

log = logging.getLogger("lso")


def setup_logging(config_dir: str):
    def time_formatter(time: datetime, _: str = None) -> Text:
        return Text(time.strftime('%H:%M:%S'))

    try:
        config = (utils.read_yaml(os.path.join(config_dir, 'main.yaml')) or {}).get('logging', {})
    except (FileNotFoundError, YAMLError):
        config = {}

    # Setup console logger
    ch = RichHandler(rich_tracebacks=True, tracebacks_suppress=[discord], log_time_format=time_formatter)
    ch.setLevel(LOGLEVEL[config.get('console_loglevel', 'INFO')])

    # Setup file logging
    os.makedirs('logs', exist_ok=True)
    fh = RotatingFileHandler(os.path.join('logs', 'lso.log'), encoding='utf-8',
                             maxBytes=config.get('logrotate_size', 10485760),
                             backupCount=config.get('logrotate_count', 5))
    fh.setLevel(LOGLEVEL[config.get('loglevel', 'DEBUG')])
    formatter = logging.Formatter(fmt=u'%(asctime)s.%(msecs)03d %(levelname)s\t%(name)s\t%(message)s',
                                  datefmt='%Y-%m-%d %H:%M:%S')
    if config.get('utc', True):
        formatter.converter = time.gmtime
    fh.setFormatter(formatter)

    # Configure the root logger
    logging.basicConfig(level=LOGLEVEL[config.get('loglevel', 'DEBUG')], format="%(message)s", handlers=[ch, fh])

    # Change 3rd-party logging
    logging.getLogger(name='asyncio').setLevel(logging.WARNING)
    logging.getLogger(name='discord').setLevel(logging.ERROR)
    logging.getLogger(name='psycopg.pool').setLevel(logging.WARNING)
    logging.getLogger(name='pykwalify').setLevel(logging.CRITICAL)


def print_shorthand(script: str) -> int:
    machine = replay(load_script(script), GradeStateMachine())
    print(machine.shorthand)
    missing = missing_fields(machine.entry, check_lso=False)
    if missing:
        log.warning(f"Grade would not save, missing: {', '.join(missing)}")
    return 0


def print_phases(phase: str | None) -> int:
    console = Console()
    phases = [ApproachPhase(phase)] if phase else list(ApproachPhase)
    for _phase in phases:
        table = Table(title=f"Phase {_phase.value}", show_header=True, header_style="bold")
        table.add_column("Category")
        table.add_column("Buttons")
        buttons = get_buttons_for_phase(_phase)
        for category in get_categories_for_phase(_phase):
            table.add_row(category, ' '.join(
                b.label for b in buttons if b.category == category and not b.is_label
            ))
        console.print(table)
    return 0


async def save_script(config_dir: str, script: str, lso_pilot_id: str, announce: bool) -> int:
    steps = load_script(script)
    async with Node(config_dir=config_dir) as node:
        plugin = LSOGrading(node)
        await plugin.install()
        if not await plugin.authorize(lso_pilot_id):
            log.error(f"Pilot {lso_pilot_id} is not a current LSO.")
            return -1
        session = plugin.create_session(lso_pilot_id, announce=announce)
        replay(steps, session.machine)
        if session.entry.board_number and not session.entry.pilot_id:
            await session.set_board_number(session.entry.board_number)
        shorthand = session.shorthand
        if not await session.save():
            log.error(f"Grade not saved: {session.machine.save_error}")
            return -1
        log.info(f"Grade saved: {shorthand}")
    return 0


if __name__ == "__main__":
    args = parse_args()
    setup_logging(args.config)
    load_language(args.config)
    log.debug(f"LSO Kneeboard v{__version__}")

    # Require Python >= 3.10
    if sys.version_info < (3, 10):
        print("ERROR: LSO Kneeboard requires Python >= 3.10.")
        sys.exit(-2)

    try:
        if args.command == 'shorthand':
            rc = print_shorthand(args.script)
        elif args.command == 'phases':
            rc = print_phases(args.phase)
        else:
            rc = asyncio.run(save_script(args.config, args.script, args.lso, args.announce))
    except (YAMLError, ValueError) as ex:
        log.error(ex)
        rc = -1
    except FileNotFoundError as ex:
        log.error(f"File not found: {ex.filename}")
        rc = -1
    except (FatalException, PluginError) as ex:
        log.critical(ex)
        rc = -2
    except KeyboardInterrupt:
        rc = -1
    sys.exit(rc)
