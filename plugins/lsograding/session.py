from __future__ import annotations

import logging

from typing import Optional, TYPE_CHECKING

from .const import ApproachPhase
from .entry import is_complete_fuel_state
from .timer import GrooveTimer

if TYPE_CHECKING:
    from .lookup import PilotLookup
    from .notifier import GradeNotifier
    from .statemachine import GradeStateMachine

__all__ = [
    "GradingSession"
]


class GradingSession:
    """
    One LSO working the kneeboard: the grade state machine plus the groove timer,
    the pilot lookup and the squadron announcement.
    """

    def __init__(self, machine: GradeStateMachine, timer: Optional[GrooveTimer] = None, *,
                 lookup: Optional[PilotLookup] = None, notifier: Optional[GradeNotifier] = None):
        self.log = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self.machine = machine
        self.timer = timer or GrooveTimer()
        self.lookup = lookup
        self.notifier = notifier
        self._timer_started = False

    @property
    def entry(self):
        return self.machine.entry

    @property
    def shorthand(self) -> str:
        return self.machine.shorthand

    def _sample_timer(self) -> None:
        if self.timer.is_running:
            self.machine.set_groove_time(self.timer.stop())

    def _auto_advance(self) -> None:
        entry = self.machine.entry
        if (entry.board_number and entry.aircraft_type and is_complete_fuel_state(entry.fuel_state)
                and not entry.current_phase):
            self.machine.select_phase(ApproachPhase.X)

    # pre-ball-call
    def key_press(self) -> None:
        if not self._timer_started and not self.timer.is_running:
            self.timer.start()
            self._timer_started = True

    async def set_board_number(self, board_number: str) -> None:
        self.machine.set_board_number(board_number)
        if self.lookup:
            pilot = await self.lookup.resolve(board_number)
            if pilot:
                self.machine.set_pilot_info(pilot.id, pilot.callsign)
            else:
                self.machine.set_pilot_info(None, None)
        self._auto_advance()

    def set_aircraft_type(self, aircraft_type: str) -> None:
        self.machine.set_aircraft_type(aircraft_type)
        self._auto_advance()

    def set_fuel_state(self, fuel_state: str) -> None:
        self.machine.set_fuel_state(fuel_state)
        self._auto_advance()

    def ball_call(self) -> None:
        if not self.timer.is_running:
            self.timer.start()
            self._timer_started = True
        self.machine.set_ball_call(True)
        self.machine.select_phase(ApproachPhase.X)

    def toggle_timer(self) -> None:
        if self.timer.is_running:
            self.timer.reset()
            self._timer_started = False
        else:
            self.timer.start()
            self._timer_started = True

    # end of the pass
    def select_wire(self, wire: int) -> None:
        self.machine.select_wire(wire)
        self._sample_timer()

    def toggle_outcome_deviation(self, symbol: str) -> None:
        self.machine.toggle_deviation(symbol)
        self._sample_timer()

    def no_hook(self) -> None:
        self.machine.toggle_no_hook()
        self._sample_timer()

    def delete(self) -> None:
        self.machine.reset_grade()
        self.timer.reset()
        self._timer_started = False

    async def save(self) -> bool:
        if self.timer.elapsed_seconds > 0:
            self.machine.set_groove_time(self.timer.elapsed_seconds)
        callsign = self.machine.entry.pilot_callsign
        if not await self.machine.save_grade():
            self.log.debug(f"Grade not saved: {self.machine.save_error}")
            return False
        self.timer.reset()
        self._timer_started = False
        if self.notifier:
            await self.notifier.announce(self.machine.last_saved, callsign)
        return True
