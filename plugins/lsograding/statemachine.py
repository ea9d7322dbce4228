from __future__ import annotations

import logging

from dataclasses import dataclass, replace
from typing import Callable, Optional, Protocol, Type, TypeVar, TYPE_CHECKING

from core import get_translation
from .const import (ApproachPhase, DeviationSeverity, GradeType, GradeUIState, OutcomeType, GRADE_POINTS,
                    ARRESTMENT_SYMBOLS, OUTCOME_SYMBOLS, next_severity)
from .entry import Deviation, GradeEntry, GradeRecord, parse_fuel_state
from .padconfig import PAD_RULES, PadRules
from .shorthand import shorthand_for

if TYPE_CHECKING:
    from .storage import SaveResult

__all__ = [
    "Operation",
    "SetCarrier",
    "SetMission",
    "SetBoardNumber",
    "SetAircraftType",
    "SetFuelState",
    "SetPilotInfo",
    "ToggleNight",
    "SetBallCall",
    "SelectPhase",
    "ToggleDeviation",
    "SelectWire",
    "SelectOutcome",
    "ToggleWaveOff",
    "ToggleNoHook",
    "TogglePatternDeviation",
    "ToggleComment",
    "SelectGrade",
    "SetGrooveTime",
    "SetRemarks",
    "ResetGrade",
    "reducer",
    "apply",
    "deviation_state",
    "effective_outcome",
    "missing_fields",
    "can_save",
    "is_no_hook",
    "build_record",
    "GradeSink",
    "GradeStateMachine"
]

_ = get_translation(__name__.split('.')[1])


class Operation:
    """Base class of all operations the reducer understands."""


@dataclass(frozen=True)
class SetCarrier(Operation):
    carrier_id: str


@dataclass(frozen=True)
class SetMission(Operation):
    mission_id: Optional[str]


@dataclass(frozen=True)
class SetBoardNumber(Operation):
    board_number: str


@dataclass(frozen=True)
class SetAircraftType(Operation):
    aircraft_type: str


@dataclass(frozen=True)
class SetFuelState(Operation):
    fuel_state: str


@dataclass(frozen=True)
class SetPilotInfo(Operation):
    pilot_id: Optional[str]
    pilot_callsign: Optional[str]


@dataclass(frozen=True)
class ToggleNight(Operation):
    pass


@dataclass(frozen=True)
class SetBallCall(Operation):
    value: bool = True


@dataclass(frozen=True)
class SelectPhase(Operation):
    phase: ApproachPhase


@dataclass(frozen=True)
class ToggleDeviation(Operation):
    symbol: str


@dataclass(frozen=True)
class SelectWire(Operation):
    wire: int


@dataclass(frozen=True)
class SelectOutcome(Operation):
    outcome: OutcomeType


@dataclass(frozen=True)
class ToggleWaveOff(Operation):
    pass


@dataclass(frozen=True)
class ToggleNoHook(Operation):
    pass


@dataclass(frozen=True)
class TogglePatternDeviation(Operation):
    symbol: str


@dataclass(frozen=True)
class ToggleComment(Operation):
    key: str
    has_two_states: bool = False


@dataclass(frozen=True)
class SelectGrade(Operation):
    grade: GradeType


@dataclass(frozen=True)
class SetGrooveTime(Operation):
    seconds: int


@dataclass(frozen=True)
class SetRemarks(Operation):
    remarks: str


@dataclass(frozen=True)
class ResetGrade(Operation):
    pass


OP = TypeVar('OP', bound=Operation)
Reducer = Callable[[GradeEntry, Operation, PadRules], GradeEntry]

_REDUCERS: dict[Type[Operation], Reducer] = {}


def reducer(op_type: Type[OP]) -> Callable[[Callable[[GradeEntry, OP, PadRules], GradeEntry]], Reducer]:
    def inner_wrapper(func):
        _REDUCERS[op_type] = func
        return func

    return inner_wrapper


def apply(entry: GradeEntry, operation: Operation, rules: PadRules = PAD_RULES) -> GradeEntry:
    """
    Applies one operation to a grade entry and returns the resulting entry.

    The input entry is never modified. Operations that make no sense in the current state
    (a phase deviation without a selected phase, an unknown symbol) return the entry unchanged.
    """
    func = _REDUCERS.get(type(operation))
    if func is None:
        raise TypeError(f"No reducer registered for {type(operation).__name__}")
    return func(entry, operation, rules)


# --- pre-ball-call fields ---

@reducer(SetCarrier)
def _set_carrier(entry: GradeEntry, op: SetCarrier, _rules: PadRules) -> GradeEntry:
    return entry.update(carrier_id=op.carrier_id)


@reducer(SetMission)
def _set_mission(entry: GradeEntry, op: SetMission, _rules: PadRules) -> GradeEntry:
    return entry.update(mission_id=op.mission_id)


@reducer(SetBoardNumber)
def _set_board_number(entry: GradeEntry, op: SetBoardNumber, _rules: PadRules) -> GradeEntry:
    return entry.update(board_number=op.board_number)


@reducer(SetAircraftType)
def _set_aircraft_type(entry: GradeEntry, op: SetAircraftType, _rules: PadRules) -> GradeEntry:
    return entry.update(aircraft_type=op.aircraft_type)


@reducer(SetFuelState)
def _set_fuel_state(entry: GradeEntry, op: SetFuelState, _rules: PadRules) -> GradeEntry:
    return entry.update(fuel_state=op.fuel_state)


@reducer(SetPilotInfo)
def _set_pilot_info(entry: GradeEntry, op: SetPilotInfo, _rules: PadRules) -> GradeEntry:
    return entry.update(pilot_id=op.pilot_id, pilot_callsign=op.pilot_callsign)


@reducer(ToggleNight)
def _toggle_night(entry: GradeEntry, _op: ToggleNight, _rules: PadRules) -> GradeEntry:
    return entry.update(is_night=not entry.is_night)


@reducer(SetBallCall)
def _set_ball_call(entry: GradeEntry, op: SetBallCall, _rules: PadRules) -> GradeEntry:
    return entry.update(has_ball_call=op.value)


# --- grading ---

@reducer(SelectPhase)
def _select_phase(entry: GradeEntry, op: SelectPhase, _rules: PadRules) -> GradeEntry:
    # an armed OC belongs to the phase it was armed in
    return entry.update(current_phase=op.phase, pending_oc=False)


def _toggle_aa(entry: GradeEntry, _symbol: str, _rules: PadRules) -> GradeEntry:
    return entry.update(aa_severity=None if entry.aa_severity else DeviationSeverity.REASONABLE)


def _toggle_nesa(entry: GradeEntry, _symbol: str, _rules: PadRules) -> GradeEntry:
    severity = next_severity(entry.nesa_severity)
    return entry.update(nesa_severity=severity, lig_severity=None if severity else entry.lig_severity)


def _toggle_lig(entry: GradeEntry, _symbol: str, _rules: PadRules) -> GradeEntry:
    severity = next_severity(entry.lig_severity)
    return entry.update(lig_severity=severity, nesa_severity=None if severity else entry.nesa_severity)


def _toggle_pattern(entry: GradeEntry, symbol: str, _rules: PadRules) -> GradeEntry:
    if symbol == 'TWA':
        severity = next_severity(entry.twa_severity)
        return entry.update(twa_severity=severity, tca_severity=None if severity else entry.tca_severity)
    elif symbol == 'TCA':
        severity = next_severity(entry.tca_severity)
        return entry.update(tca_severity=severity, twa_severity=None if severity else entry.twa_severity)
    return entry


def _toggle_oc(entry: GradeEntry, _symbol: str, _rules: PadRules) -> GradeEntry:
    phase = entry.current_phase
    if not phase:
        return entry
    last = next((i for i in reversed(range(len(entry.deviations))) if entry.deviations[i].phase == phase), None)
    if last is None:
        # nothing to attach to yet, the next deviation in this phase takes it
        return entry.update(pending_oc=True)
    deviations = list(entry.deviations)
    deviations[last] = replace(deviations[last], is_oc=not deviations[last].is_oc)
    return entry.update(deviations=tuple(deviations))


def _toggle_phase_deviation(entry: GradeEntry, symbol: str, rules: PadRules) -> GradeEntry:
    phase = entry.current_phase
    if not phase or not rules.is_known(symbol):
        return entry
    binary = rules.is_binary(symbol)
    deviations = list(entry.deviations)
    existing = next((i for i, d in enumerate(deviations) if d.phase == phase and d.symbol == symbol), None)

    if existing is not None:
        severity = None if binary else next_severity(deviations[existing].severity)
        if severity is None:
            del deviations[existing]
        else:
            deviations[existing] = replace(deviations[existing], severity=severity)
    else:
        siblings = rules.siblings(symbol)
        deviations = [d for d in deviations if not (d.phase == phase and d.symbol in siblings)]
        deviations.append(Deviation(
            phase=phase,
            symbol=symbol,
            severity=DeviationSeverity.REASONABLE if binary else DeviationSeverity.A_LITTLE,
            is_oc=entry.pending_oc
        ))
    # consumed, or dropped if an existing deviation was cycled
    return entry.update(deviations=tuple(deviations), pending_oc=False)


_SYMBOL_HANDLERS: dict[str, Callable[[GradeEntry, str, PadRules], GradeEntry]] = {
    'AA': _toggle_aa,
    'NESA': _toggle_nesa,
    'LIG': _toggle_lig,
    'OC': _toggle_oc,
    'TWA': _toggle_pattern,
    'TCA': _toggle_pattern
}


@reducer(ToggleDeviation)
def _toggle_deviation(entry: GradeEntry, op: ToggleDeviation, rules: PadRules) -> GradeEntry:
    handler = _SYMBOL_HANDLERS.get(op.symbol, _toggle_phase_deviation)
    return handler(entry, op.symbol, rules)


@reducer(TogglePatternDeviation)
def _toggle_pattern_deviation(entry: GradeEntry, op: TogglePatternDeviation, rules: PadRules) -> GradeEntry:
    return _toggle_pattern(entry, op.symbol, rules)


@reducer(SelectWire)
def _select_wire(entry: GradeEntry, op: SelectWire, _rules: PadRules) -> GradeEntry:
    return entry.update(wire_number=op.wire, outcome_type=OutcomeType.TRAP)


@reducer(SelectOutcome)
def _select_outcome(entry: GradeEntry, op: SelectOutcome, _rules: PadRules) -> GradeEntry:
    return entry.update(
        outcome_type=op.outcome,
        wire_number=entry.wire_number if op.outcome == OutcomeType.TRAP else None,
        # OWO and WOFD rule out a WO
        has_wave_off=False if op.outcome in (OutcomeType.OWN_WAVE_OFF, OutcomeType.WOFD) else entry.has_wave_off
    )


@reducer(ToggleWaveOff)
def _toggle_wave_off(entry: GradeEntry, _op: ToggleWaveOff, _rules: PadRules) -> GradeEntry:
    outcome = entry.outcome_type
    if not entry.has_wave_off and outcome in (OutcomeType.OWN_WAVE_OFF, OutcomeType.WOFD):
        outcome = None
    return entry.update(has_wave_off=not entry.has_wave_off, outcome_type=outcome)


@reducer(ToggleNoHook)
def _toggle_no_hook(entry: GradeEntry, _op: ToggleNoHook, _rules: PadRules) -> GradeEntry:
    return entry.update(wire_number=None, outcome_type=None)


@reducer(ToggleComment)
def _toggle_comment(entry: GradeEntry, op: ToggleComment, _rules: PadRules) -> GradeEntry:
    current = entry.comments.get(op.key, 0)
    state = (current + 1) % 3 if op.has_two_states else (1 if current == 0 else 0)
    comments = dict(entry.comments)
    if state == 0:
        comments.pop(op.key, None)
    else:
        comments[op.key] = state
    return entry.update(comments=comments)


@reducer(SelectGrade)
def _select_grade(entry: GradeEntry, op: SelectGrade, _rules: PadRules) -> GradeEntry:
    return entry.update(overall_grade=None if entry.overall_grade == op.grade else op.grade)


@reducer(SetGrooveTime)
def _set_groove_time(entry: GradeEntry, op: SetGrooveTime, _rules: PadRules) -> GradeEntry:
    return entry.update(groove_time_seconds=op.seconds)


@reducer(SetRemarks)
def _set_remarks(entry: GradeEntry, op: SetRemarks, _rules: PadRules) -> GradeEntry:
    return entry.update(remarks=op.remarks)


@reducer(ResetGrade)
def _reset_grade(entry: GradeEntry, _op: ResetGrade, _rules: PadRules) -> GradeEntry:
    return entry.fresh()


# --- queries ---

def deviation_state(entry: GradeEntry, symbol: str) -> Optional[DeviationSeverity]:
    """Severity a pad button should display for the current phase, None if inactive."""
    if symbol == 'NESA':
        return entry.nesa_severity
    elif symbol == 'LIG':
        return entry.lig_severity
    elif symbol == 'AA':
        return entry.aa_severity
    elif symbol == 'TWA':
        return entry.twa_severity
    elif symbol == 'TCA':
        return entry.tca_severity
    elif symbol == 'OC':
        if entry.pending_oc:
            return DeviationSeverity.REASONABLE
        devs = entry.phase_deviations(entry.current_phase)
        return DeviationSeverity.REASONABLE if devs and devs[-1].is_oc else None
    dev = entry.find(entry.current_phase, symbol) if entry.current_phase else None
    return dev.severity if dev else None


def effective_outcome(entry: GradeEntry) -> Optional[OutcomeType]:
    if entry.outcome_type:
        return entry.outcome_type
    elif entry.has_symbol(*ARRESTMENT_SYMBOLS):
        return OutcomeType.BOLTER
    elif entry.has_symbol('WOFD'):
        return OutcomeType.WOFD
    elif entry.has_symbol('OWO'):
        return OutcomeType.OWN_WAVE_OFF
    elif entry.has_symbol('WO') or entry.has_wave_off:
        return OutcomeType.WAVE_OFF
    return None


def missing_fields(entry: GradeEntry, lso_pilot_id: Optional[str] = None, *,
                   check_lso: bool = True) -> list[str]:
    missing = []
    if check_lso and not lso_pilot_id:
        missing.append(_('grading LSO'))
    if not entry.carrier_id:
        missing.append(_('carrier'))
    if not entry.board_number:
        missing.append(_('board number'))
    if not entry.aircraft_type:
        missing.append(_('aircraft type'))
    if not entry.overall_grade:
        missing.append(_('overall grade'))
    if not effective_outcome(entry):
        missing.append(_('outcome'))
    return missing


def can_save(entry: GradeEntry) -> bool:
    return not missing_fields(entry, check_lso=False)


def is_no_hook(entry: GradeEntry) -> bool:
    return entry.wire_number is None and entry.outcome_type is None and not entry.has_symbol(*OUTCOME_SYMBOLS)


def build_record(entry: GradeEntry, lso_pilot_id: str) -> GradeRecord:
    """Builds the persisted record. The entry must have passed :func:`missing_fields`."""
    return GradeRecord(
        mission_id=entry.mission_id,
        carrier_id=entry.carrier_id,
        pilot_id=entry.pilot_id,
        grading_lso_id=lso_pilot_id,
        board_number=entry.board_number,
        aircraft_type=entry.aircraft_type,
        fuel_state=parse_fuel_state(entry.fuel_state),
        overall_grade=entry.overall_grade,
        grade_points=GRADE_POINTS[entry.overall_grade],
        wire_number=entry.wire_number,
        outcome_type=effective_outcome(entry),
        deviations=entry.deviations,
        lso_comment=shorthand_for(entry),
        groove_time_seconds=entry.groove_time_seconds,
        is_night=entry.is_night,
        remarks=entry.remarks or None
    )


class GradeSink(Protocol):
    async def insert(self, record: GradeRecord) -> SaveResult:
        ...


class GradeStateMachine:
    """
    Owns the grade entry of one grading session.

    Every mutation goes through :func:`apply`; the shorthand is derived from the current entry
    whenever it is read. Only :meth:`save_grade` talks to the outside world.
    """

    def __init__(self, store: Optional[GradeSink] = None, lso_pilot_id: Optional[str] = None, *,
                 entry: Optional[GradeEntry] = None, rules: PadRules = PAD_RULES):
        self.log = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self.store = store
        self.lso_pilot_id = lso_pilot_id
        self.rules = rules
        self.entry = entry or GradeEntry()
        self.ui_state = GradeUIState.PRE_BALL_CALL
        self.saving = False
        self.save_error: Optional[str] = None
        self.last_saved: Optional[GradeRecord] = None

    @property
    def shorthand(self) -> str:
        return shorthand_for(self.entry)

    def dispatch(self, operation: Operation) -> GradeEntry:
        self.entry = apply(self.entry, operation, self.rules)
        return self.entry

    # pre-ball-call
    def set_carrier_id(self, carrier_id: str) -> None:
        self.dispatch(SetCarrier(carrier_id))

    def set_mission_id(self, mission_id: Optional[str]) -> None:
        self.dispatch(SetMission(mission_id))

    def set_board_number(self, board_number: str) -> None:
        self.dispatch(SetBoardNumber(board_number))

    def set_aircraft_type(self, aircraft_type: str) -> None:
        self.dispatch(SetAircraftType(aircraft_type))

    def set_fuel_state(self, fuel_state: str) -> None:
        self.dispatch(SetFuelState(fuel_state))

    def set_pilot_info(self, pilot_id: Optional[str], pilot_callsign: Optional[str]) -> None:
        self.dispatch(SetPilotInfo(pilot_id, pilot_callsign))

    def toggle_night(self) -> None:
        self.dispatch(ToggleNight())

    def set_ball_call(self, value: bool = True) -> None:
        self.dispatch(SetBallCall(value))

    # grading
    def select_phase(self, phase: ApproachPhase) -> None:
        self.dispatch(SelectPhase(phase))
        if self.ui_state == GradeUIState.PRE_BALL_CALL:
            self.ui_state = GradeUIState.GRADING

    def toggle_deviation(self, symbol: str) -> None:
        self.dispatch(ToggleDeviation(symbol))

    def toggle_pattern_deviation(self, symbol: str) -> None:
        self.dispatch(TogglePatternDeviation(symbol))

    def select_wire(self, wire: int) -> None:
        self.dispatch(SelectWire(wire))

    def select_outcome(self, outcome: OutcomeType) -> None:
        self.dispatch(SelectOutcome(outcome))

    def toggle_wave_off(self) -> None:
        self.dispatch(ToggleWaveOff())

    def toggle_no_hook(self) -> None:
        self.dispatch(ToggleNoHook())

    def toggle_comment(self, key: str, has_two_states: bool = False) -> None:
        self.dispatch(ToggleComment(key, has_two_states))

    def select_grade(self, grade: GradeType) -> None:
        self.dispatch(SelectGrade(grade))

    def set_groove_time(self, seconds: int) -> None:
        self.dispatch(SetGrooveTime(seconds))

    def set_remarks(self, remarks: str) -> None:
        self.dispatch(SetRemarks(remarks))

    def deviation_state(self, symbol: str) -> Optional[DeviationSeverity]:
        return deviation_state(self.entry, symbol)

    @property
    def can_save(self) -> bool:
        return can_save(self.entry)

    @property
    def is_no_hook(self) -> bool:
        return is_no_hook(self.entry)

    def reset_grade(self) -> None:
        self.dispatch(ResetGrade())
        self.ui_state = GradeUIState.PRE_BALL_CALL
        self.save_error = None

    async def save_grade(self) -> bool:
        missing = missing_fields(self.entry, self.lso_pilot_id)
        if missing:
            self.save_error = _('Missing required fields: {}').format(', '.join(missing))
            return False
        if not self.store:
            self.save_error = _('No grade store configured')
            return False

        record = build_record(self.entry, self.lso_pilot_id)
        previous = self.ui_state
        self.saving = True
        self.ui_state = GradeUIState.SAVING
        self.save_error = None
        try:
            result = await self.store.insert(record)
        except Exception as ex:
            self.log.exception(ex)
            result = None
            self.save_error = str(ex) or _('Save failed')
        finally:
            self.saving = False
            self.ui_state = previous

        if result is None:
            return False
        elif not result.success:
            self.save_error = result.message or _('Save failed')
            return False
        self.log.info(f"Grade for board number {record.board_number} saved: {record.lso_comment}")
        self.last_saved = record
        self.reset_grade()
        return True
