from __future__ import annotations

import sqlite3
from pathlib import Path

import aiosqlite
import pytest
from agenda.errors import (
    CyclicDependencyError,
    DanglingDependencyError,
    InvalidPriorityError,
    NotFoundError,
    StoreError,
)
from agenda.models.orchestration import AgentOrchestration
from agenda.models.priorities import Priority
from agenda.persistence.migrations import run_migrations
from agenda.persistence.sqlite_store import SQLitePriorityStore
from agenda.protocols.persistence import PriorityStore

from tests.helpers import make_priority

pytestmark = pytest.mark.asyncio


def _priorities() -> list[Priority]:
    return [
        make_priority("welcome", weight=90, execute_once=True),
        make_priority(
            "search",
            weight=60,
            required_data=["ubicacion"],
            depends_on=["welcome"],
            guard={"any": [{"exists": "presupuesto"}, {"eq": ["urgencia", "alta"]}]},
            task_id="task_search",
        ),
        make_priority(
            "close",
            weight=40,
            depends_on=["search", "welcome"],
            completion_criteria="Say goodbye",
            actions=[{"type": "mark_milestone", "name": "closed"}],
            metadata={"owner": "sales"},
        ),
    ]


class TestSQLitePriorityStore:
    async def test_satisfies_protocol(self, db_path: str) -> None:
        assert isinstance(SQLitePriorityStore(db_path), PriorityStore)

    async def test_round_trip(self, db_path: str) -> None:
        store = SQLitePriorityStore(db_path)
        original = _priorities()
        await store.save("agent-1", original)
        loaded = await store.load("agent-1")
        assert {priority.id: priority for priority in loaded} == {
            priority.id: priority for priority in original
        }

    async def test_load_unknown_agent_is_empty(self, db_path: str) -> None:
        assert await SQLitePriorityStore(db_path).load("nobody") == []

    async def test_save_replaces_previous_set(self, db_path: str) -> None:
        store = SQLitePriorityStore(db_path)
        await store.save("agent-1", _priorities())
        await store.save("agent-1", [make_priority("solo")])
        assert [priority.id for priority in await store.load("agent-1")] == ["solo"]

        async with aiosqlite.connect(db_path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM priority_dependencies")
            (count,) = await cursor.fetchone()
        assert count == 0

    async def test_agents_are_isolated(self, db_path: str) -> None:
        store = SQLitePriorityStore(db_path)
        await store.save("agent-1", _priorities())
        await store.save("agent-2", [make_priority("other")])
        assert len(await store.load("agent-1")) == 3
        assert await store.list_agents() == ["agent-1", "agent-2"]

    async def test_rejects_cycle_without_writing(self, db_path: str) -> None:
        store = SQLitePriorityStore(db_path)
        await store.save("agent-1", [make_priority("keep")])
        with pytest.raises(CyclicDependencyError):
            await store.save(
                "agent-1",
                [make_priority("a", depends_on=["b"]), make_priority("b", depends_on=["a"])],
            )
        assert [priority.id for priority in await store.load("agent-1")] == ["keep"]

    async def test_rejects_dangling_dependency(self, db_path: str) -> None:
        with pytest.raises(DanglingDependencyError):
            await SQLitePriorityStore(db_path).save(
                "agent-1", [make_priority("a", depends_on=["ghost"])]
            )

    async def test_delete_cascades(self, db_path: str) -> None:
        store = SQLitePriorityStore(db_path)
        await store.save("agent-1", _priorities())
        assert await store.delete("agent-1") is True
        assert await store.delete("agent-1") is False
        assert await store.load("agent-1") == []

    async def test_corrupt_payload(self, db_path: str) -> None:
        store = SQLitePriorityStore(db_path)
        await store.save("agent-1", [make_priority("a")])
        async with aiosqlite.connect(db_path) as db:
            await db.execute("UPDATE priorities SET payload = '{\"id\": \"a\"}'")
            await db.commit()
        with pytest.raises(StoreError, match="invalid"):
            await store.load("agent-1")


class TestStoredDocuments:
    async def test_document_round_trip(
        self, db_path: str, sample_document: AgentOrchestration
    ) -> None:
        store = SQLitePriorityStore(db_path)
        await store.save_document(sample_document)
        assert await store.load_document("realty") == sample_document

    async def test_priority_save_keeps_context(
        self, db_path: str, sample_document: AgentOrchestration
    ) -> None:
        store = SQLitePriorityStore(db_path)
        await store.save_document(sample_document)
        await store.save("realty", sample_document.priorities[:1])
        loaded = await store.load_document("realty")
        assert [priority.id for priority in loaded.priorities] == ["priority_welcome"]
        assert loaded.tasks == sample_document.tasks
        assert loaded.fact_definitions == sample_document.fact_definitions

    async def test_unknown_task_rejected_without_writing(self, db_path: str) -> None:
        store = SQLitePriorityStore(db_path)
        document = AgentOrchestration(
            agent_id="realty", priorities=[make_priority("p", task_id="task_ghost")]
        )
        with pytest.raises(InvalidPriorityError, match="unknown task task_ghost"):
            await store.save_document(document)
        assert await store.list_agents() == []

    async def test_missing_agent(self, db_path: str) -> None:
        with pytest.raises(NotFoundError):
            await SQLitePriorityStore(db_path).load_document("nobody")

    async def test_priorities_only_agent_has_empty_context(self, db_path: str) -> None:
        store = SQLitePriorityStore(db_path)
        await store.save("agent-1", [make_priority("a")])
        document = await store.load_document("agent-1")
        assert document.tasks == []
        assert [priority.id for priority in document.priorities] == ["a"]


class TestMigrations:
    async def test_idempotent(self, tmp_path: Path) -> None:
        path = str(tmp_path / "m.db")
        assert await run_migrations(path) == ["001_priorities.sql", "002_agent_context.sql"]
        assert await run_migrations(path) == []

    async def test_checksum_mismatch(self, tmp_path: Path) -> None:
        migrations = tmp_path / "migrations"
        migrations.mkdir()
        script = migrations / "001_init.sql"
        script.write_text("CREATE TABLE t (x INTEGER);", encoding="utf-8")
        path = str(tmp_path / "m.db")
        await run_migrations(path, migrations)

        script.write_text("CREATE TABLE t (x TEXT);", encoding="utf-8")
        with pytest.raises(StoreError, match="modified after being applied"):
            await run_migrations(path, migrations)

    async def test_weight_constraint(self, db_path: str) -> None:
        with sqlite3.connect(db_path) as conn:
            conn.execute("INSERT INTO agents (agent_id, saved_at) VALUES ('a', 'now')")
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO priorities (agent_id, priority_id, position, name, weight, "
                    "enabled, execute_once, payload) VALUES ('a', 'p', 0, 'P', 0, 1, 0, '{}')"
                )
