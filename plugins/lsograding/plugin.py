from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from core import Plugin, PluginConfigurationError
from .lookup import PilotLookup
from .notifier import GradeNotifier
from .session import GradingSession
from .statemachine import GradeStateMachine
from .storage import GradeStore

if TYPE_CHECKING:
    from core import Node

__all__ = [
    "LSOGrading"
]


class LSOGrading(Plugin):

    def __init__(self, node: Node, name: str | None = 'lsograding'):
        super().__init__(node, name)
        self.store = GradeStore(self.apool) if self.apool else None
        self.lookup = PilotLookup(self.apool, lso_qualification_id=self.get_config().get('lso_qualification')) \
            if self.apool else None

    def get_notifier(self, carrier_id: Optional[str] = None) -> Optional[GradeNotifier]:
        config = self.get_config(carrier_id)
        announce = config.get('announce', {})
        if not announce or not announce.get('enabled', True):
            return None
        if not announce.get('webhook'):
            raise PluginConfigurationError(self.plugin_name, 'announce/webhook')
        return GradeNotifier(announce['webhook'], username=announce.get('username', 'LSO'),
                             carrier_names=config.get('carriers', {}))

    async def authorize(self, lso_pilot_id: str) -> bool:
        if not self.get_config().get('require_qualification', False):
            return True
        if not self.lookup:
            return False
        return await self.lookup.is_lso(lso_pilot_id)

    def create_session(self, lso_pilot_id: str, *, carrier_id: Optional[str] = None,
                       mission_id: Optional[str] = None, announce: bool = True) -> GradingSession:
        carrier_id = carrier_id or self.get_config().get('carrier')
        machine = GradeStateMachine(self.store, lso_pilot_id)
        if carrier_id:
            machine.set_carrier_id(carrier_id)
        if mission_id:
            machine.set_mission_id(mission_id)
        notifier = self.get_notifier(carrier_id) if announce else None
        self.log.debug(f"New grading session for LSO {lso_pilot_id} on carrier {carrier_id or '-'}")
        return GradingSession(machine, lookup=self.lookup, notifier=notifier)
