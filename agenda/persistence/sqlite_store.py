"""SQLite persistence for agent priority sets."""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Sequence
from datetime import UTC, datetime

import aiosqlite
from pydantic import ValidationError

from agenda.errors import AgendaError, NotFoundError, PriorityValidationError, StoreError
from agenda.models.orchestration import AgentOrchestration
from agenda.models.priorities import Priority
from agenda.persistence.yaml_store import validate_orchestration
from agenda.priorities.registry import PriorityRegistry

logger = logging.getLogger(__name__)

_CONTEXT_FIELDS = {"tasks", "fact_definitions", "fallback_behavior"}


class SQLitePriorityStore:
    """Each ``save`` replaces an agent's whole priority set in one transaction.

    The set is validated before anything is written, and the dependency
    table's foreign keys reject any edge to a priority outside the set.
    ``save_document`` also stores the tasks and fact definitions the
    priorities refer to; ``save`` leaves them as they were.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path

    async def load(self, agent_id: str) -> list[Priority]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT payload FROM priorities WHERE agent_id = ? ORDER BY position",
                (agent_id,),
            )
            rows = await cursor.fetchall()
        try:
            priorities = [Priority.model_validate(json.loads(row["payload"])) for row in rows]
            return PriorityRegistry.validate_set(priorities)
        except (ValidationError, PriorityValidationError, json.JSONDecodeError) as exc:
            raise StoreError(f"stored priorities for {agent_id} are invalid: {exc}") from exc

    async def load_document(self, agent_id: str) -> AgentOrchestration:
        """Rebuild the full agent document: priorities plus stored context."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "SELECT context FROM agents WHERE agent_id = ?", (agent_id,)
            )
            row = await cursor.fetchone()
        if row is None:
            raise NotFoundError(agent_id)
        priorities = await self.load(agent_id)
        try:
            document = AgentOrchestration.model_validate(
                {**json.loads(row[0]), "agent_id": agent_id, "priorities": priorities}
            )
            validate_orchestration(document)
        except (ValidationError, AgendaError, json.JSONDecodeError) as exc:
            raise StoreError(f"stored document for {agent_id} is invalid: {exc}") from exc
        return document

    async def save(self, agent_id: str, priorities: Sequence[Priority]) -> None:
        validated = PriorityRegistry.validate_set(priorities)
        await self._write(agent_id, validated, context=None)

    async def save_document(self, document: AgentOrchestration) -> None:
        """Validate the whole document, then store priorities and context together."""
        validate_orchestration(document)
        context = document.model_dump(mode="json", by_alias=True, include=_CONTEXT_FIELDS)
        await self._write(document.agent_id, document.priorities, context=json.dumps(context))

    async def _write(
        self,
        agent_id: str,
        validated: Sequence[Priority],
        *,
        context: str | None,
    ) -> None:
        now = datetime.now(UTC).isoformat()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("PRAGMA foreign_keys = ON")
            try:
                if context is None:
                    await db.execute(
                        "INSERT INTO agents (agent_id, saved_at) VALUES (?, ?) "
                        "ON CONFLICT(agent_id) DO UPDATE SET saved_at = excluded.saved_at",
                        (agent_id, now),
                    )
                else:
                    await db.execute(
                        "INSERT INTO agents (agent_id, saved_at, context) VALUES (?, ?, ?) "
                        "ON CONFLICT(agent_id) DO UPDATE SET "
                        "saved_at = excluded.saved_at, context = excluded.context",
                        (agent_id, now, context),
                    )
                await db.execute("DELETE FROM priorities WHERE agent_id = ?", (agent_id,))
                await db.executemany(
                    """INSERT INTO priorities (
                        agent_id, priority_id, position, name, weight,
                        enabled, execute_once, payload
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    [
                        (
                            agent_id,
                            priority.id,
                            position,
                            priority.name,
                            priority.weight,
                            1 if priority.enabled else 0,
                            1 if priority.execute_once else 0,
                            json.dumps(priority.model_dump(mode="json", by_alias=True)),
                        )
                        for position, priority in enumerate(validated)
                    ],
                )
                await db.executemany(
                    "INSERT INTO priority_dependencies (agent_id, priority_id, depends_on) "
                    "VALUES (?, ?, ?)",
                    [
                        (agent_id, priority.id, dependency)
                        for priority in validated
                        for dependency in priority.depends_on
                    ],
                )
                await db.commit()
            except sqlite3.Error as exc:
                await db.rollback()
                raise StoreError(f"saving priorities for {agent_id} failed: {exc}") from exc
        logger.info("Saved %d priorities for agent %s", len(validated), agent_id)

    async def list_agents(self) -> list[str]:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("SELECT agent_id FROM agents ORDER BY agent_id")
            rows = await cursor.fetchall()
            return [row[0] for row in rows]

    async def delete(self, agent_id: str) -> bool:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("PRAGMA foreign_keys = ON")
            cursor = await db.execute("DELETE FROM agents WHERE agent_id = ?", (agent_id,))
            await db.commit()
            return cursor.rowcount > 0


__all__ = ["SQLitePriorityStore"]
