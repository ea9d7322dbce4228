from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from .const import ApproachPhase

__all__ = [
    "PadButton",
    "CommentButton",
    "RowGroup",
    "PadRules",
    "DEFAULT_PAD_BUTTONS",
    "COMMENT_BUTTONS",
    "ROW_GROUPS",
    "CATEGORY_LABELS",
    "INLINE_CATEGORIES",
    "PHASE_BUTTON_OVERRIDES",
    "PAD_RULES",
    "get_buttons_for_phase",
    "get_categories_for_phase"
]


@dataclass(frozen=True)
class PadButton:
    symbol: str
    label: str
    category: str
    exclusive_group: Optional[str] = None
    # non-interactive tile
    is_label: bool = False
    # on/off only, no severity cycle
    binary_toggle: bool = False


@dataclass(frozen=True)
class CommentButton:
    key: str
    label1: str
    label2: Optional[str] = None

    @property
    def has_two_states(self) -> bool:
        return self.label2 is not None


@dataclass(frozen=True)
class RowGroup:
    secondary: str
    spacer: bool


# Exclusivity rules (per phase):
#   gs       - only one of HI/LO/C/S/CD/B/flythrough
#   desc     - only one of TMRD/NERD/SRD
#   speed    - F or SLO
#   power    - only one of TMP/NEP/EG, P is a modifier
#   lineup   - only one of US/OS/LUL/LUR/DL/DR, CB is a modifier
#   attitude - TMA or NEA, A is a modifier
#
# OC, AA, R and WU are routed by the state machine, P/A/N/W/RR conjugate with R and WU,
# CB conjugates with US/OS. TWA/TCA live in the pattern row and are not listed here.
DEFAULT_PAD_BUTTONS: tuple[PadButton, ...] = (
    # GLIDE SLOPE
    PadButton('HI', 'HI', 'GLIDE SLOPE', exclusive_group='gs'),
    PadButton('LO', 'LO', 'GLIDE SLOPE', exclusive_group='gs'),
    PadButton('C', 'C', 'GLIDE SLOPE', exclusive_group='gs'),
    PadButton('S', 'S', 'GLIDE SLOPE', exclusive_group='gs'),
    PadButton('CD', 'CD', 'GLIDE SLOPE', exclusive_group='gs'),
    PadButton('B', 'B', 'GLIDE SLOPE', exclusive_group='gs'),
    PadButton('/', '/', 'GLIDE SLOPE', exclusive_group='gs'),
    PadButton('\\', '\\', 'GLIDE SLOPE', exclusive_group='gs'),

    # DESCENT RATE
    PadButton('TMRD', 'TMRD', 'DESCENT RATE', exclusive_group='desc'),
    PadButton('NERD', 'NERD', 'DESCENT RATE', exclusive_group='desc'),
    PadButton('SRD', 'SRD', 'DESCENT RATE', exclusive_group='desc'),
    PadButton('DESC_SPACER', '', 'DESCENT RATE', is_label=True),
    PadButton('SPEED_LABEL', 'SPEED', 'DESCENT RATE', is_label=True),
    PadButton('F', 'F', 'DESCENT RATE', exclusive_group='speed'),
    PadButton('SLO', 'SLO', 'DESCENT RATE', exclusive_group='speed'),

    # POWER
    PadButton('TMP', 'TMP', 'POWER', exclusive_group='power'),
    PadButton('NEP', 'NEP', 'POWER', exclusive_group='power'),
    PadButton('P', 'P', 'POWER', binary_toggle=True),
    PadButton('EG', 'EG', 'POWER', exclusive_group='power'),

    # LINE UP
    PadButton('US', 'US', 'LINE UP', exclusive_group='lineup'),
    PadButton('OS', 'OS', 'LINE UP', exclusive_group='lineup'),
    PadButton('CB', 'CB', 'LINE UP', binary_toggle=True),
    PadButton('LUL', 'LUL', 'LINE UP', exclusive_group='lineup'),
    PadButton('LUR', 'LUR', 'LINE UP', exclusive_group='lineup'),
    PadButton('DL', 'DL', 'LINE UP', exclusive_group='lineup'),
    PadButton('DR', 'DR', 'LINE UP', exclusive_group='lineup'),
    PadButton('AA', 'AA', 'LINE UP'),

    # CONTROL
    PadButton('OC', 'OC', 'CONTROL'),
    PadButton('R', 'R', 'CONTROL'),
    PadButton('WU', 'WU', 'CONTROL'),

    # AIRCRAFT
    PadButton('N', 'N', 'AIRCRAFT', binary_toggle=True),
    PadButton('W', 'W', 'AIRCRAFT', binary_toggle=True),
    PadButton('RR', 'RR', 'AIRCRAFT', binary_toggle=True),

    # ATTITUDE
    PadButton('TMA', 'TMA', 'ATTITUDE', exclusive_group='attitude'),
    PadButton('NEA', 'NEA', 'ATTITUDE', exclusive_group='attitude'),
    PadButton('A', 'A', 'ATTITUDE', binary_toggle=True),

    # ARRESTMENT
    PadButton('BLTR', 'B', 'ARRESTMENT', exclusive_group='arrestment', binary_toggle=True),
    PadButton('HS', 'HS', 'ARRESTMENT', exclusive_group='arrestment', binary_toggle=True),
    PadButton('T&G', 'T&G', 'ARRESTMENT', exclusive_group='arrestment', binary_toggle=True),

    # WAVE OFF
    PadButton('WO', 'WO', 'WAVE OFF', exclusive_group='waveoff', binary_toggle=True),
    PadButton('WOFD', 'WOFD', 'WAVE OFF', exclusive_group='waveoff', binary_toggle=True),
    PadButton('OWO', 'OWO', 'WAVE OFF', exclusive_group='waveoff', binary_toggle=True),
)

ROW_GROUPS: Mapping[str, RowGroup] = MappingProxyType({
    'CONTROL': RowGroup(secondary='AIRCRAFT', spacer=True),
    'POWER': RowGroup(secondary='ATTITUDE', spacer=False)
})

CATEGORY_LABELS: Mapping[str, str] = MappingProxyType({})

# rendered inline with other rows
INLINE_CATEGORIES = frozenset({'ARRESTMENT', 'WAVE OFF'})

COMMENT_BUTTONS: tuple[CommentButton, ...] = (
    CommentButton('TTH', 'TTH'),
    CommentButton('AFU', 'AFU'),
    CommentButton('FUBAR', 'FUBAR'),
    CommentButton('HUA', 'HUA'),
    CommentButton('HNIWHD', 'HNIWHD', 'HNFIWD'),
    CommentButton('DNKHS', 'DNKHS', 'DNKUA'),
    CommentButton('OGSH', 'OGSH'),
    CommentButton('HAE', 'HAE'),
)

# If a phase is listed, only these symbols are shown for it.
PHASE_BUTTON_OVERRIDES: Mapping[ApproachPhase, tuple[str, ...]] = MappingProxyType({})


class PadRules:
    """
    Read-only view on a pad layout, answering the questions the state machine asks:
    does a symbol exist, is it a binary toggle and which symbols share its exclusive group.
    """

    def __init__(self, buttons: tuple[PadButton, ...]):
        self._buttons = buttons
        self._by_symbol: Mapping[str, PadButton] = MappingProxyType({
            button.symbol: button for button in buttons
        })
        groups: dict[str, list[str]] = {}
        for button in buttons:
            if button.exclusive_group:
                groups.setdefault(button.exclusive_group, []).append(button.symbol)
        self._groups: Mapping[str, frozenset[str]] = MappingProxyType({
            name: frozenset(symbols) for name, symbols in groups.items()
        })

    @property
    def buttons(self) -> tuple[PadButton, ...]:
        return self._buttons

    def get(self, symbol: str) -> Optional[PadButton]:
        return self._by_symbol.get(symbol)

    def is_known(self, symbol: str) -> bool:
        button = self._by_symbol.get(symbol)
        return button is not None and not button.is_label

    def is_binary(self, symbol: str) -> bool:
        button = self._by_symbol.get(symbol)
        return button is not None and button.binary_toggle

    def siblings(self, symbol: str) -> frozenset[str]:
        button = self._by_symbol.get(symbol)
        if not button or not button.exclusive_group:
            return frozenset()
        return self._groups[button.exclusive_group] - {symbol}


PAD_RULES = PadRules(DEFAULT_PAD_BUTTONS)


def get_buttons_for_phase(phase: ApproachPhase) -> tuple[PadButton, ...]:
    overrides = PHASE_BUTTON_OVERRIDES.get(phase)
    if overrides:
        return tuple(b for b in DEFAULT_PAD_BUTTONS if b.symbol in overrides)
    return DEFAULT_PAD_BUTTONS


def get_categories_for_phase(phase: ApproachPhase) -> list[str]:
    # dict keeps the first-seen order
    return list(dict.fromkeys(b.category for b in get_buttons_for_phase(phase)))
