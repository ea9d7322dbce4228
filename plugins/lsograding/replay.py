from __future__ import annotations

import logging

from typing import Any, Callable, TYPE_CHECKING

from core import utils
from .const import ApproachPhase, GradeType, OutcomeType
from .padconfig import COMMENT_BUTTONS

if TYPE_CHECKING:
    from .statemachine import GradeStateMachine

__all__ = [
    "load_script",
    "replay",
    "STEPS"
]

logger = logging.getLogger(__name__)

_TWO_STATE_COMMENTS = {button.key for button in COMMENT_BUTTONS if button.has_two_states}


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else [value]


def _toggle(machine: GradeStateMachine, value: Any) -> None:
    for symbol in _as_list(value):
        machine.toggle_deviation(str(symbol))


def _pattern(machine: GradeStateMachine, value: Any) -> None:
    for symbol in _as_list(value):
        machine.toggle_pattern_deviation(str(symbol))


def _comment(machine: GradeStateMachine, value: Any) -> None:
    for key in _as_list(value):
        machine.toggle_comment(key, key in _TWO_STATE_COMMENTS)


# step name -> handler(machine, value); steps without a value get None
STEPS: dict[str, Callable[[GradeStateMachine, Any], None]] = {
    'carrier': lambda m, v: m.set_carrier_id(str(v)),
    'mission': lambda m, v: m.set_mission_id(str(v) if v is not None else None),
    'board_number': lambda m, v: m.set_board_number(str(v)),
    'aircraft': lambda m, v: m.set_aircraft_type(str(v)),
    'fuel': lambda m, v: m.set_fuel_state(str(v)),
    'night': lambda m, v: m.toggle_night(),
    'ball_call': lambda m, v: m.set_ball_call(True if v is None else bool(v)),
    'phase': lambda m, v: m.select_phase(ApproachPhase(str(v))),
    'toggle': _toggle,
    'pattern': _pattern,
    'wire': lambda m, v: m.select_wire(int(v)),
    'outcome': lambda m, v: m.select_outcome(OutcomeType(str(v))),
    'wave_off': lambda m, v: m.toggle_wave_off(),
    'no_hook': lambda m, v: m.toggle_no_hook(),
    'comment': _comment,
    'grade': lambda m, v: m.select_grade(GradeType(str(v))),
    'groove_time': lambda m, v: m.set_groove_time(int(v)),
    'remarks': lambda m, v: m.set_remarks(str(v)),
    'reset': lambda m, v: m.reset_grade()
}


def load_script(filename: str) -> list:
    """
    Reads a grading script: a YAML list of steps applied in order, e.g.

        - board_number: 412
        - phase: X
        - toggle: [HI, HI]
        - wire: 3
        - grade: OK
    """
    script = utils.read_yaml(filename)
    if not isinstance(script, list):
        raise ValueError(f"{filename} does not contain a list of grading steps")
    return script


def replay(script: list, machine: GradeStateMachine) -> GradeStateMachine:
    for idx, step in enumerate(script):
        if isinstance(step, str):
            name, value = step, None
        elif isinstance(step, dict) and len(step) == 1:
            name, value = next(iter(step.items()))
        else:
            raise ValueError(f"Step {idx + 1} is not a single grading step: {step}")
        handler = STEPS.get(name)
        if not handler:
            raise ValueError(f"Step {idx + 1}: unknown step \"{name}\"")
        logger.debug(f"Step {idx + 1}: {name} {value if value is not None else ''}".rstrip())
        handler(machine, value)
    return machine
