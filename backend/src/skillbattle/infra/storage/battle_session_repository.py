"""Stores for shared battle session records.

Both stores expose the same compare-and-set contract: a write only lands when
the stored version still equals the version the writer read.
"""

import asyncio
import logging
from typing import Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from skillbattle.infra.storage.connection import DatabaseManager, db_manager as default_db_manager
from skillbattle.mechanics.combat.exceptions import InvalidInputError, PersistenceFailureError
from skillbattle.models.battle_session_db import BattleSessionRow
from skillbattle.models.combat.persistence.battle_session import BattleSessionRecord

logger = logging.getLogger(__name__)


class BattleSessionStore:
    """Interface to the shared store holding session records."""

    async def create(self, record: BattleSessionRecord) -> BattleSessionRecord:
        raise NotImplementedError

    async def load(self, session_id: str) -> BattleSessionRecord:
        raise NotImplementedError

    async def compare_and_set(self, record: BattleSessionRecord, expected_version: int) -> bool:
        """Write ``record`` with version ``expected_version + 1``.

        Returns:
            True if the write landed, False if the stored version had moved on
        """
        raise NotImplementedError


class InMemorySessionStore(BattleSessionStore):
    """Process-local store for single-host sessions and tests.

    Records are kept serialized so callers never alias stored state.
    """

    def __init__(self):
        self._records: Dict[str, dict] = {}
        self._lock = asyncio.Lock()

    async def create(self, record: BattleSessionRecord) -> BattleSessionRecord:
        async with self._lock:
            if record.session_id in self._records:
                raise InvalidInputError(f"Session {record.session_id} already exists", field="session_id")
            self._records[record.session_id] = record.to_dict()
        logger.info(f"[SessionStore] Created session {record.session_id}")
        return record.copy()

    async def load(self, session_id: str) -> BattleSessionRecord:
        async with self._lock:
            data = self._records.get(session_id)
        # Yield to the loop like a real store round trip
        await asyncio.sleep(0)
        if data is None:
            raise InvalidInputError(f"Unknown session {session_id}", field="session_id")
        return BattleSessionRecord.from_dict(data)

    async def compare_and_set(self, record: BattleSessionRecord, expected_version: int) -> bool:
        async with self._lock:
            current = self._records.get(record.session_id)
            if current is None or current["version"] != expected_version:
                return False
            data = record.to_dict()
            data["version"] = expected_version + 1
            self._records[record.session_id] = data
            return True


class SqlBattleSessionStore(BattleSessionStore):
    """Session store over the ``battle_sessions`` table.

    The compare-and-set is a single conditional UPDATE checked by rowcount.
    """

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        """Initialize store with database manager."""
        self.db_manager = db_manager or default_db_manager

    @staticmethod
    def _state_payload(record: BattleSessionRecord) -> dict:
        data = record.to_dict()
        for column in ("session_id", "turn", "version"):
            data.pop(column, None)
        return data

    @staticmethod
    def _to_record(row: BattleSessionRow) -> BattleSessionRecord:
        data = dict(row.state)
        data.update(session_id=row.session_id, turn=row.turn, version=row.version)
        return BattleSessionRecord.from_dict(data)

    async def create(self, record: BattleSessionRecord) -> BattleSessionRecord:
        """Insert a new session row.

        Raises:
            InvalidInputError: If the session id is taken
            PersistenceFailureError: If the database is unreachable
        """
        try:
            async with self.db_manager.get_async_session() as session:
                session.add(BattleSessionRow(
                    session_id=record.session_id,
                    turn=record.turn,
                    version=record.version,
                    state=self._state_payload(record),
                ))
        except IntegrityError:
            raise InvalidInputError(f"Session {record.session_id} already exists", field="session_id")
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[SessionStore] Failed to create session {record.session_id}: {e}")
            raise PersistenceFailureError(
                f"Could not create session {record.session_id}", session_id=record.session_id, error=e
            )
        logger.info(f"[SessionStore] Created session {record.session_id}")
        return record.copy()

    async def load(self, session_id: str) -> BattleSessionRecord:
        try:
            async with self.db_manager.get_async_session() as session:
                result = await session.execute(
                    select(BattleSessionRow).where(BattleSessionRow.session_id == session_id)
                )
                row = result.scalar_one_or_none()
                if row is None:
                    raise InvalidInputError(f"Unknown session {session_id}", field="session_id")
                return self._to_record(row)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[SessionStore] Failed to load session {session_id}: {e}")
            raise PersistenceFailureError(f"Could not load session {session_id}", session_id=session_id, error=e)

    async def compare_and_set(self, record: BattleSessionRecord, expected_version: int) -> bool:
        stmt = (
            update(BattleSessionRow)
            .where(
                BattleSessionRow.session_id == record.session_id,
                BattleSessionRow.version == expected_version,
            )
            .values(
                turn=record.turn,
                version=expected_version + 1,
                state=self._state_payload(record),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.db_manager.get_async_session() as session:
                result = await session.execute(stmt)
                landed = result.rowcount == 1
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[SessionStore] Failed to write session {record.session_id}: {e}")
            raise PersistenceFailureError(
                f"Could not write session {record.session_id}", session_id=record.session_id, error=e
            )
        if not landed:
            logger.debug(f"[SessionStore] CAS missed for {record.session_id} at version {expected_version}")
        return landed
