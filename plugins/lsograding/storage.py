from __future__ import annotations

import logging
import psycopg

from dataclasses import dataclass
from psycopg.types.json import Jsonb
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from psycopg_pool import AsyncConnectionPool
    from .entry import GradeRecord

__all__ = [
    "SaveResult",
    "GradeStore"
]


@dataclass(frozen=True)
class SaveResult:
    success: bool
    message: Optional[str] = None


class GradeStore:

    def __init__(self, apool: AsyncConnectionPool):
        self.apool = apool
        self.log = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    async def insert(self, record: GradeRecord) -> SaveResult:
        data = record.as_dict()
        data['deviations'] = Jsonb(data['deviations'])
        try:
            async with self.apool.connection() as conn:
                async with conn.transaction():
                    await conn.execute("""
                        INSERT INTO lso_grades (mission_id, carrier_id, pilot_id, grading_lso_id, board_number,
                                                aircraft_type, fuel_state, overall_grade, grade_points, wire_number,
                                                outcome_type, deviations, lso_comment, groove_time_seconds, is_night,
                                                remarks)
                        VALUES (%(mission_id)s, %(carrier_id)s, %(pilot_id)s, %(grading_lso_id)s, %(board_number)s,
                                %(aircraft_type)s, %(fuel_state)s, %(overall_grade)s, %(grade_points)s,
                                %(wire_number)s, %(outcome_type)s, %(deviations)s, %(lso_comment)s,
                                %(groove_time_seconds)s, %(is_night)s, %(remarks)s)
                    """, data)
        except psycopg.Error as ex:
            self.log.error(f"Grade for board number {record.board_number} could not be stored: {ex}")
            return SaveResult(success=False, message=str(ex))
        return SaveResult(success=True)

