from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from agenda.models.conversation import ConversationState
from agenda.models.orchestration import AgentOrchestration
from agenda.models.priorities import Priority
from agenda.models.tasks import Task
from agenda.persistence.migrations import run_migrations
from agenda.persistence.yaml_store import orchestration_to_yaml
from agenda.priorities.tracker import RunOnceTracker

from tests.fakes import KeywordMatcher, RecordingExecutor


@pytest.fixture
def state() -> ConversationState:
    return ConversationState(conversation_id="conv-1", agent_id="agent-1")


@pytest.fixture
def tracker() -> RunOnceTracker:
    return RunOnceTracker("conv-1")


@pytest.fixture
def matcher() -> KeywordMatcher:
    return KeywordMatcher()


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def sample_document() -> AgentOrchestration:
    return AgentOrchestration(
        agent_id="realty",
        tasks=[Task(id="task_search", name="Search")],
        fact_definitions=[
            {"name": "has_budget", "type": "exists", "field": "presupuesto"},
            {"name": "wants_rent", "type": "equals", "field": "tipo_operacion", "value": "rent"},
        ],
        priorities=[
            Priority(
                id="priority_welcome",
                name="Welcome",
                weight=90,
                triggers=["hola", "hello"],
                execute_once=True,
            ),
            Priority(
                id="priority_search",
                name="Search",
                weight=60,
                triggers=["buscar", "search"],
                required_data=["ubicacion"],
                task_id="task_search",
                guard={"exists": "has_budget"},
            ),
            Priority(
                id="priority_close",
                name="Close",
                weight=40,
                triggers=["gracias", "thanks"],
                depends_on=["priority_search"],
                completion_criteria="Confirm the visit and say goodbye.",
            ),
        ],
    )


@pytest.fixture
def document_file(tmp_path: Path, sample_document: AgentOrchestration) -> Path:
    path = tmp_path / "realty.yaml"
    path.write_text(orchestration_to_yaml(sample_document), encoding="utf-8")
    return path


@pytest_asyncio.fixture
async def db_path(tmp_path: Path) -> str:
    path = str(tmp_path / "agenda.db")
    await run_migrations(path)
    return path
