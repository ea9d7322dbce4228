from __future__ import annotations

import aiohttp
import discord
import logging

from typing import Optional, TYPE_CHECKING

from core import get_translation
from .const import GRADE_DISPLAY, GradeType
from .timer import format_groove_time

if TYPE_CHECKING:
    from .entry import GradeRecord

__all__ = [
    "GradeNotifier"
]

_ = get_translation(__name__.split('.')[1])

GRADE_COLORS = {
    GradeType.OK_UNDERLINE: discord.Color.green(),
    GradeType.OK: discord.Color.green(),
    GradeType.FAIR: discord.Color.orange(),
    GradeType.NO_GRADE: discord.Color.light_grey(),
    GradeType.CUT: discord.Color.red(),
    GradeType.NO_COUNT: discord.Color.light_grey()
}


class GradeNotifier:
    """Announces saved grades in a squadron channel through a Discord webhook."""

    def __init__(self, webhook_url: Optional[str], *, username: str = 'LSO',
                 carrier_names: Optional[dict[str, str]] = None):
        self.webhook_url = webhook_url
        self.username = username
        self.carrier_names = carrier_names or {}
        self.log = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def create_embed(self, record: GradeRecord, pilot_callsign: Optional[str] = None) -> discord.Embed:
        pilot = f"{record.board_number} ({pilot_callsign})" if pilot_callsign else record.board_number
        carrier = self.carrier_names.get(record.carrier_id, record.carrier_id)
        embed = discord.Embed(title=_("LSO Grade for {}").format(pilot),
                              color=GRADE_COLORS.get(record.overall_grade, discord.Color.blue()))
        embed.add_field(name=_("Carrier"), value=carrier)
        embed.add_field(name=_("Plane"), value=record.aircraft_type)
        embed.add_field(name=_("Time"), value=_("Night") if record.is_night else _("Day"))
        embed.add_field(name=_("Grade"), value=GRADE_DISPLAY[record.overall_grade].replace('_', '\\_'))
        embed.add_field(name=_("Points"), value=f"{record.grade_points:.1f}")
        embed.add_field(name=_("Wire"), value=f"{record.wire_number or '-'}")
        if record.groove_time_seconds:
            embed.add_field(name=_("Groove"), value=format_groove_time(record.groove_time_seconds))
        embed.add_field(name=_("LSO Comment"), value=record.lso_comment.replace('_', '\\_') or '-', inline=False)
        if record.remarks:
            embed.add_field(name=_("Remarks"), value=record.remarks, inline=False)
        return embed

    async def announce(self, record: GradeRecord, pilot_callsign: Optional[str] = None) -> bool:
        if not self.enabled:
            return False
        embed = self.create_embed(record, pilot_callsign)
        try:
            async with aiohttp.ClientSession() as session:
                webhook = discord.Webhook.from_url(self.webhook_url, session=session)
                await webhook.send(embed=embed, username=self.username)
            return True
        except (discord.HTTPException, aiohttp.ClientError, ValueError) as ex:
            # announcing never fails a save
            self.log.warning(f"Grade for board number {record.board_number} could not be announced: {ex}")
            return False
