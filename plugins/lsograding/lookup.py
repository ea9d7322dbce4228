from __future__ import annotations

import logging
import psycopg

from psycopg.rows import dict_row
from typing import Optional, TYPE_CHECKING

from .entry import Carrier, ResolvedPilot

if TYPE_CHECKING:
    from psycopg_pool import AsyncConnectionPool

__all__ = [
    "PilotLookup"
]


class PilotLookup:
    """
    Resolves board numbers to pilots for the kneeboard header.

    The lookups are best effort: database problems are logged and reported as "not found".
    """

    def __init__(self, apool: AsyncConnectionPool, *, lso_qualification_id: Optional[str] = None):
        self.apool = apool
        self.lso_qualification_id = lso_qualification_id
        self.log = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self.last_lookup: Optional[str] = None

    @staticmethod
    def _to_pilot(row: dict) -> ResolvedPilot:
        return ResolvedPilot(
            id=str(row['id']),
            callsign=row['callsign'] or '',
            board_number=row['board_number'],
            wing_insignia_url=row.get('wing_insignia_url'),
            squadron_insignia_url=row.get('squadron_insignia_url'),
            squadron_designation=row.get('squadron_designation')
        )

    async def resolve(self, board_number: str) -> Optional[ResolvedPilot]:
        if not board_number or not board_number.strip().isdecimal():
            self.last_lookup = None
            return None
        number = int(board_number)
        try:
            async with self.apool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cursor:
                    await cursor.execute("""
                        SELECT p.id, p.callsign, p."boardNumber" AS board_number,
                               s.designation AS squadron_designation, s.insignia_url AS squadron_insignia_url,
                               w.insignia_url AS wing_insignia_url
                        FROM pilots p
                        JOIN pilot_assignments a ON a.pilot_id = p.id AND a.end_date IS NULL
                        JOIN org_squadrons s ON s.id = a.squadron_id
                        JOIN org_wings w ON w.id = s.wing_id
                        WHERE p."boardNumber" = %s
                        LIMIT 1
                    """, (number, ))
                    row = await cursor.fetchone()
                    if not row:
                        # pilots without a current squadron assignment
                        await cursor.execute("""
                            SELECT id, callsign, "boardNumber" AS board_number
                            FROM pilots WHERE "boardNumber" = %s LIMIT 1
                        """, (number, ))
                        row = await cursor.fetchone()
        except psycopg.Error as ex:
            self.log.error(f"Lookup of board number {board_number} failed: {ex}")
            return None
        if not row:
            return None
        self.last_lookup = board_number
        return self._to_pilot(row)

    async def lso_info(self, pilot_id: Optional[str]) -> Optional[ResolvedPilot]:
        if not pilot_id:
            return None
        try:
            async with self.apool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cursor:
                    await cursor.execute("""
                        SELECT p.id, p.callsign, p."boardNumber" AS board_number,
                               s.designation AS squadron_designation, s.insignia_url AS squadron_insignia_url,
                               w.insignia_url AS wing_insignia_url
                        FROM pilots p
                        LEFT OUTER JOIN pilot_assignments a ON a.pilot_id = p.id AND a.end_date IS NULL
                        LEFT OUTER JOIN org_squadrons s ON s.id = a.squadron_id
                        LEFT OUTER JOIN org_wings w ON w.id = s.wing_id
                        WHERE p.id = %s
                        LIMIT 1
                    """, (pilot_id, ))
                    row = await cursor.fetchone()
        except psycopg.Error as ex:
            self.log.error(f"Lookup of LSO {pilot_id} failed: {ex}")
            return None
        return self._to_pilot(row) if row else None

    async def is_lso(self, pilot_id: Optional[str]) -> bool:
        if not pilot_id or not self.lso_qualification_id:
            return False
        try:
            async with self.apool.connection() as conn:
                cursor = await conn.execute("""
                    SELECT id FROM pilot_qualifications
                    WHERE pilot_id = %s AND qualification_id = %s AND is_current IS TRUE
                    LIMIT 1
                """, (pilot_id, self.lso_qualification_id))
                return await cursor.fetchone() is not None
        except psycopg.Error as ex:
            self.log.error(f"LSO qualification check for {pilot_id} failed: {ex}")
            return False

    async def carriers(self) -> list[Carrier]:
        try:
            async with self.apool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cursor:
                    await cursor.execute("""
                        SELECT id, hull, name, callsign, tacan_channel, tacan_identifier
                        FROM carriers ORDER BY hull
                    """)
                    return [
                        Carrier(id=str(row['id']), hull=row['hull'], name=row['name'], callsign=row['callsign'],
                                tacan_channel=row['tacan_channel'], tacan_identifier=row['tacan_identifier'])
                        async for row in cursor
                    ]
        except psycopg.Error as ex:
            self.log.error(f"Carriers could not be read: {ex}")
            return []
