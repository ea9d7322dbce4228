from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Optional, TYPE_CHECKING

from .const import (ApproachPhase, DeviationSeverity, GradeType, OutcomeType, GRADE_DISPLAY, ALL_THE_WAY_PHASES,
                    ARRESTMENT_SYMBOLS, OUTCOME_SYMBOLS, SYMBOL_ALIASES, R_MODIFIER_ORDER, WU_MODIFIER_ORDER,
                    phase_index)
from .entry import Deviation
from .padconfig import COMMENT_BUTTONS

if TYPE_CHECKING:
    from .entry import GradeEntry

__all__ = [
    "format_symbol",
    "build_deviation_tokens",
    "generate_shorthand",
    "shorthand_for",
    "is_landed_on_wave_off"
]

SEVERITY_WRAPPERS = {
    DeviationSeverity.A_LITTLE: ('(', ')'),
    DeviationSeverity.REASONABLE: ('', ''),
    DeviationSeverity.GROSS: ('_', '_')
}

_CORE_GROOVE = frozenset(ALL_THE_WAY_PHASES)


def format_symbol(symbol: str, severity: DeviationSeverity, is_oc: bool = False) -> str:
    prefix, suffix = SEVERITY_WRAPPERS[severity]
    return f"{'OC' if is_oc else ''}{prefix}{SYMBOL_ALIASES.get(symbol, symbol)}{suffix}"


@dataclass
class _Token:
    start: int
    text: str


def _split_runs(phases: list[ApproachPhase]) -> list[list[ApproachPhase]]:
    runs = [[phases[0]]]
    for phase in phases[1:]:
        if phase_index(phase) == phase_index(runs[-1][-1]) + 1:
            runs[-1].append(phase)
        else:
            runs.append([phase])
    return runs


def _merge_modifiers(devs: list[Deviation], host_symbol: str, order: tuple[str, ...]) -> list[Deviation]:
    host = next((d for d in devs if d.symbol == host_symbol), None)
    if not host:
        return devs
    active = {d.symbol for d in devs if d.symbol in order}
    if not active:
        # a bare R or WU is not written down
        return [d for d in devs if d is not host]
    suffix = ''.join(s for s in order if s in active)
    return [
        replace(d, symbol=host_symbol + suffix) if d is host else d
        for d in devs
        if d.symbol not in order
    ]


def _compound(devs: list[Deviation]) -> list[Deviation]:
    # CB joins its US/OS host, the severity wraps the whole compound: (USCB), not (US)CB
    cb = next((d for d in devs if d.symbol == 'CB'), None)
    host = next((d for d in devs if d.symbol in ('US', 'OS')), None)
    if cb and host:
        devs = [
            replace(d, symbol=host.symbol + 'CB') if d is host else d
            for d in devs
            if d is not cb
        ]
    devs = _merge_modifiers(devs, 'R', R_MODIFIER_ORDER)
    # P and A are already gone if R took them
    return _merge_modifiers(devs, 'WU', WU_MODIFIER_ORDER)


def build_deviation_tokens(deviations: Iterable[Deviation]) -> list[str]:
    """
    Renders phase deviations, consolidating consecutive phases.

    The same symbol with the same severity and OC flag in consecutive phases becomes a range
    (``HIX-IM``). A run that contains the whole core groove X..AR becomes ``HIAW``; every phase of
    the run, AW in front or TL/IW behind, goes into that token. Whatever is
    left is grouped by phase, compounded and written before the phase code (``LO(F)X``).
    """
    deviations = list(deviations)
    if not deviations:
        return []

    groups: dict[tuple[str, DeviationSeverity, bool], list[ApproachPhase]] = {}
    for dev in deviations:
        groups.setdefault((dev.symbol, dev.severity, dev.is_oc), []).append(dev.phase)

    tokens: list[_Token] = []
    consolidated: set[tuple[str, ApproachPhase]] = set()

    for (symbol, severity, is_oc), phases in groups.items():
        text = format_symbol(symbol, severity, is_oc)
        for run in _split_runs(sorted(phases, key=phase_index)):
            if _CORE_GROOVE <= set(run):
                tokens.append(_Token(phase_index(run[0]), f"{text}AW"))
                consolidated.update((symbol, p) for p in run)
            elif len(run) >= 2:
                tokens.append(_Token(phase_index(run[0]), f"{text}{run[0].value}-{run[-1].value}"))
                consolidated.update((symbol, p) for p in run)

    by_phase: dict[ApproachPhase, list[Deviation]] = {}
    for dev in deviations:
        if (dev.symbol, dev.phase) not in consolidated:
            by_phase.setdefault(dev.phase, []).append(dev)

    for phase, devs in by_phase.items():
        devs = _compound(devs)
        if not devs:
            continue
        text = ''.join(format_symbol(d.symbol, d.severity, d.is_oc) for d in devs)
        tokens.append(_Token(phase_index(phase), f"{text}{phase.value}"))

    # stable, consolidated tokens stay ahead of single-phase tokens of the same start
    tokens.sort(key=lambda t: t.start)
    return [t.text for t in tokens]


def is_landed_on_wave_off(deviations: Iterable[Deviation], outcome_type: Optional[OutcomeType],
                          has_wave_off: bool = False) -> bool:
    deviations = list(deviations)
    wave_off = has_wave_off or any(d.symbol == 'WO' for d in deviations)
    bolter = any(d.symbol in ARRESTMENT_SYMBOLS for d in deviations)
    return wave_off and (outcome_type in (OutcomeType.TRAP, OutcomeType.BOLTER) or bolter)


def _opener(deviations: list[Deviation], grade: Optional[GradeType], outcome_type: Optional[OutcomeType],
            has_wave_off: bool) -> Optional[str]:
    wave_off = has_wave_off or any(d.symbol == 'WO' for d in deviations)
    bolter = next((d for d in deviations if d.symbol in ARRESTMENT_SYMBOLS), None)
    if is_landed_on_wave_off(deviations, outcome_type, has_wave_off):
        # landing on a wave-off is always a cut pass
        return 'C'
    elif wave_off:
        return 'WO'
    elif any(d.symbol == 'WOFD' for d in deviations):
        return 'WOFD'
    elif any(d.symbol == 'OWO' for d in deviations):
        return 'OWO'
    elif bolter:
        return SYMBOL_ALIASES.get(bolter.symbol, bolter.symbol)
    elif outcome_type == OutcomeType.BOLTER:
        return 'B'
    elif outcome_type == OutcomeType.WAVE_OFF:
        return 'WO'
    elif outcome_type == OutcomeType.OWN_WAVE_OFF:
        return 'OWO'
    elif outcome_type == OutcomeType.WOFD:
        return 'WOFD'
    elif grade:
        return GRADE_DISPLAY[grade]
    return None


def generate_shorthand(deviations: Iterable[Deviation],
                       grade: Optional[GradeType],
                       wire_number: Optional[int],
                       outcome_type: Optional[OutcomeType],
                       *,
                       has_ball_call: bool = False,
                       has_wave_off: bool = False,
                       twa_severity: Optional[DeviationSeverity] = None,
                       tca_severity: Optional[DeviationSeverity] = None,
                       nesa_severity: Optional[DeviationSeverity] = None,
                       lig_severity: Optional[DeviationSeverity] = None,
                       aa_severity: Optional[DeviationSeverity] = None,
                       comments: Optional[Mapping[str, int]] = None) -> str:
    """
    Generates the LSO shorthand for a pass.

    Layout: ``OPENER [BC] PATTERN PHASE-DEVIATIONS GROOVE WIRE [LANDED ON WO] COMMENTS``

    The opener is the pass outcome (``C`` for a landing on a wave-off, ``WO``, ``WOFD``, ``OWO``,
    ``B``/``HS``/``T&G``) or, for a normal pass, the grade glyph. Outcome deviations only ever
    show up in the opener.
    """
    deviations = list(deviations)
    comments = comments or {}
    landed_on_wo = is_landed_on_wave_off(deviations, outcome_type, has_wave_off)
    parts: list[str] = []

    opener = _opener(deviations, grade, outcome_type, has_wave_off)
    if opener:
        parts.append(opener)

    if has_ball_call:
        parts.append('[BC]')

    # pattern, before the groove
    if twa_severity:
        parts.append(format_symbol('TWA', twa_severity))
    if tca_severity:
        parts.append(format_symbol('TCA', tca_severity))

    parts.extend(build_deviation_tokens(d for d in deviations if d.symbol not in OUTCOME_SYMBOLS))

    for symbol, severity in (('NESA', nesa_severity), ('LIG', lig_severity), ('AA', aa_severity)):
        if severity:
            parts.append(format_symbol(symbol, severity))

    wire = f"WIRE#{wire_number}" if outcome_type == OutcomeType.TRAP and wire_number else None
    if wire:
        parts.append(wire)
    if landed_on_wo:
        parts.append('LANDED ON WO')

    for button in COMMENT_BUTTONS:
        state = comments.get(button.key, 0)
        if state == 2 and button.label2:
            parts.append(button.label2)
        elif state > 0:
            parts.append(button.label1)

    return ' '.join(parts)


def shorthand_for(entry: GradeEntry) -> str:
    return generate_shorthand(
        entry.deviations,
        entry.overall_grade,
        entry.wire_number,
        entry.outcome_type,
        has_ball_call=entry.has_ball_call,
        has_wave_off=entry.has_wave_off,
        twa_severity=entry.twa_severity,
        tca_severity=entry.tca_severity,
        nesa_severity=entry.nesa_severity,
        lig_severity=entry.lig_severity,
        aa_severity=entry.aa_severity,
        comments=entry.comments
    )
