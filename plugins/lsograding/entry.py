from __future__ import annotations

import re

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .const import ApproachPhase, DeviationSeverity, GradeType, OutcomeType, FUEL_STATE_PATTERN

__all__ = [
    "Deviation",
    "GradeEntry",
    "GradeRecord",
    "ResolvedPilot",
    "Carrier",
    "parse_fuel_state",
    "is_complete_fuel_state"
]


@dataclass(frozen=True)
class Deviation:
    phase: ApproachPhase
    symbol: str
    severity: DeviationSeverity
    # over-controlled, rendered as an OC prefix
    is_oc: bool = False

    def to_dict(self) -> dict[str, Any]:
        ret = {
            "phase": self.phase.value,
            "symbol": self.symbol,
            "severity": self.severity.value
        }
        if self.is_oc:
            ret['isOC'] = True
        return ret

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Deviation:
        return cls(phase=ApproachPhase(data['phase']), symbol=data['symbol'],
                   severity=DeviationSeverity(data['severity']), is_oc=bool(data.get('isOC', False)))


def _frozen_comments(comments: Optional[Mapping[str, int]] = None) -> Mapping[str, int]:
    return MappingProxyType(dict(comments or {}))


@dataclass(frozen=True)
class GradeEntry:
    # identification
    carrier_id: str = ''
    mission_id: Optional[str] = None
    board_number: str = ''
    aircraft_type: str = ''
    fuel_state: str = ''
    pilot_id: Optional[str] = None
    pilot_callsign: Optional[str] = None
    is_night: bool = False
    # grading
    current_phase: Optional[ApproachPhase] = None
    deviations: tuple[Deviation, ...] = ()
    wire_number: Optional[int] = None
    outcome_type: Optional[OutcomeType] = None
    overall_grade: Optional[GradeType] = None
    groove_time_seconds: Optional[int] = None
    # transient flags
    has_ball_call: bool = False
    has_wave_off: bool = False
    pending_oc: bool = False
    # pattern and groove characteristics, not phase-specific
    twa_severity: Optional[DeviationSeverity] = None
    tca_severity: Optional[DeviationSeverity] = None
    nesa_severity: Optional[DeviationSeverity] = None
    lig_severity: Optional[DeviationSeverity] = None
    aa_severity: Optional[DeviationSeverity] = None
    # comment button key -> 1 (label1) or 2 (label2)
    comments: Mapping[str, int] = field(default_factory=_frozen_comments)
    remarks: str = ''

    def __post_init__(self):
        if not isinstance(self.deviations, tuple):
            object.__setattr__(self, 'deviations', tuple(self.deviations))
        if not isinstance(self.comments, MappingProxyType):
            object.__setattr__(self, 'comments', _frozen_comments(self.comments))

    def update(self, **kwargs) -> GradeEntry:
        return replace(self, **kwargs)

    def fresh(self) -> GradeEntry:
        return GradeEntry(carrier_id=self.carrier_id, mission_id=self.mission_id, is_night=self.is_night)

    def find(self, phase: Optional[ApproachPhase], symbol: str) -> Optional[Deviation]:
        return next((d for d in self.deviations if d.phase == phase and d.symbol == symbol), None)

    def phase_deviations(self, phase: Optional[ApproachPhase]) -> list[Deviation]:
        return [d for d in self.deviations if d.phase == phase]

    def has_symbol(self, *symbols: str) -> bool:
        return any(d.symbol in symbols for d in self.deviations)


@dataclass(frozen=True)
class GradeRecord:
    """The row handed to the grade store after a successful validation."""
    mission_id: Optional[str]
    carrier_id: str
    pilot_id: Optional[str]
    grading_lso_id: str
    board_number: str
    aircraft_type: str
    fuel_state: Optional[float]
    overall_grade: GradeType
    grade_points: float
    wire_number: Optional[int]
    outcome_type: OutcomeType
    deviations: tuple[Deviation, ...]
    lso_comment: str
    groove_time_seconds: Optional[int]
    is_night: bool
    remarks: Optional[str]

    def as_dict(self) -> dict[str, Any]:
        return {
            "mission_id": self.mission_id,
            "carrier_id": self.carrier_id,
            "pilot_id": self.pilot_id,
            "grading_lso_id": self.grading_lso_id,
            "board_number": self.board_number,
            "aircraft_type": self.aircraft_type,
            "fuel_state": self.fuel_state,
            "overall_grade": self.overall_grade.value,
            "grade_points": self.grade_points,
            "wire_number": self.wire_number,
            "outcome_type": self.outcome_type.value,
            "deviations": [d.to_dict() for d in self.deviations],
            "lso_comment": self.lso_comment,
            "groove_time_seconds": self.groove_time_seconds,
            "is_night": self.is_night,
            "remarks": self.remarks
        }


@dataclass(frozen=True)
class ResolvedPilot:
    id: str
    callsign: str
    board_number: int
    wing_insignia_url: Optional[str] = None
    squadron_insignia_url: Optional[str] = None
    squadron_designation: Optional[str] = None


@dataclass(frozen=True)
class Carrier:
    id: str
    hull: str
    name: str
    callsign: str
    tacan_channel: str
    tacan_identifier: str


def parse_fuel_state(text: Optional[str]) -> Optional[float]:
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def is_complete_fuel_state(text: Optional[str]) -> bool:
    return bool(text) and re.match(FUEL_STATE_PATTERN, text) is not None
