from enum import Enum
from typing import Optional

__all__ = [
    "ApproachPhase",
    "DeviationSeverity",
    "GradeType",
    "OutcomeType",
    "GradeUIState",
    "PHASE_ORDER",
    "ALL_THE_WAY_PHASES",
    "SEVERITY_CYCLE",
    "GRADE_POINTS",
    "GRADE_DISPLAY",
    "ARRESTMENT_SYMBOLS",
    "WAVE_OFF_SYMBOLS",
    "OUTCOME_SYMBOLS",
    "GLOBAL_SYMBOLS",
    "PATTERN_SYMBOLS",
    "SYMBOL_ALIASES",
    "R_MODIFIER_ORDER",
    "WU_MODIFIER_ORDER",
    "FUEL_STATE_PATTERN",
    "phase_index",
    "next_severity"
]


class ApproachPhase(Enum):
    AW = 'AW'
    X = 'X'
    IM = 'IM'
    IC = 'IC'
    AR = 'AR'
    TL = 'TL'
    IW = 'IW'


class DeviationSeverity(Enum):
    A_LITTLE = 'a_little'
    REASONABLE = 'reasonable'
    GROSS = 'gross'


class GradeType(Enum):
    OK_UNDERLINE = 'OK_UNDERLINE'
    OK = 'OK'
    FAIR = 'FAIR'
    NO_GRADE = 'NO_GRADE'
    CUT = 'CUT'
    NO_COUNT = 'NO_COUNT'


class OutcomeType(Enum):
    TRAP = 'TRAP'
    BOLTER = 'BOLTER'
    WAVE_OFF = 'WAVE_OFF'
    OWN_WAVE_OFF = 'OWN_WAVE_OFF'
    WOFD = 'WOFD'


class GradeUIState(Enum):
    PRE_BALL_CALL = 'pre_ball_call'
    GRADING = 'grading'
    SAVING = 'saving'


PHASE_ORDER: list[ApproachPhase] = list(ApproachPhase)

# ball call to ramp
ALL_THE_WAY_PHASES: list[ApproachPhase] = [ApproachPhase.X, ApproachPhase.IM, ApproachPhase.IC, ApproachPhase.AR]

# tap cycle: none -> a_little -> reasonable -> gross -> none
SEVERITY_CYCLE: list[Optional[DeviationSeverity]] = [
    None,
    DeviationSeverity.A_LITTLE,
    DeviationSeverity.REASONABLE,
    DeviationSeverity.GROSS
]

GRADE_POINTS = {
    GradeType.OK_UNDERLINE: 5.0,
    GradeType.OK: 4.0,
    GradeType.FAIR: 3.0,
    GradeType.NO_GRADE: 2.0,
    GradeType.CUT: 0.0,
    GradeType.NO_COUNT: 0.0
}

GRADE_DISPLAY = {
    GradeType.OK_UNDERLINE: '_OK_',
    GradeType.OK: 'OK',
    GradeType.FAIR: '(OK)',
    GradeType.NO_GRADE: '--',
    GradeType.CUT: 'C',
    GradeType.NO_COUNT: 'NC'
}

ARRESTMENT_SYMBOLS = frozenset({'BLTR', 'HS', 'T&G'})
WAVE_OFF_SYMBOLS = frozenset({'WO', 'WOFD', 'OWO'})
OUTCOME_SYMBOLS = ARRESTMENT_SYMBOLS | WAVE_OFF_SYMBOLS

# groove characteristics, not bound to a phase
GLOBAL_SYMBOLS = frozenset({'AA', 'NESA', 'LIG'})
PATTERN_SYMBOLS = frozenset({'TWA', 'TCA'})

# BLTR is the arrestment bolter, B on the pad would clash with the glide slope B
SYMBOL_ALIASES = {
    'BLTR': 'B'
}

R_MODIFIER_ORDER = ('P', 'N', 'W', 'RR', 'A')
WU_MODIFIER_ORDER = ('P', 'A')

FUEL_STATE_PATTERN = r'^\d+\.\d+$'

_PHASE_INDEX = {phase: idx for idx, phase in enumerate(PHASE_ORDER)}


def phase_index(phase: ApproachPhase) -> int:
    return _PHASE_INDEX[phase]


def next_severity(current: Optional[DeviationSeverity]) -> Optional[DeviationSeverity]:
    idx = SEVERITY_CYCLE.index(current)
    return SEVERITY_CYCLE[(idx + 1) % len(SEVERITY_CYCLE)]
