from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from agenda.errors import (
    CyclicDependencyError,
    FactDefinitionError,
    InvalidPriorityError,
    NotFoundError,
    StoreError,
)
from agenda.models.orchestration import AgentOrchestration
from agenda.persistence.yaml_store import (
    YamlAgentStore,
    orchestration_to_yaml,
    parse_orchestration,
)

from tests.helpers import make_priority


class TestParseOrchestration:
    def test_round_trip(self, sample_document: AgentOrchestration) -> None:
        assert parse_orchestration(orchestration_to_yaml(sample_document)) == sample_document

    def test_accepts_unwrapped_document(self) -> None:
        document = parse_orchestration(
            "agent_id: solo\npriorities:\n  - id: p\n    name: P\n    guard:\n      all: []\n"
        )
        assert document.agent_id == "solo"
        assert document.priorities[0].guard is not None

    def test_guard_serialises_with_plain_operator_names(
        self, sample_document: AgentOrchestration
    ) -> None:
        raw = yaml.safe_load(orchestration_to_yaml(sample_document))
        guards = [priority.get("guard") for priority in raw["agent"]["priorities"]]
        assert {"exists": "has_budget"} in guards

    def test_invalid_yaml(self) -> None:
        with pytest.raises(StoreError, match="invalid YAML"):
            parse_orchestration("agent: [unclosed")

    def test_not_a_mapping(self) -> None:
        with pytest.raises(StoreError, match="mapping"):
            parse_orchestration("- just\n- a list\n")

    def test_schema_error(self) -> None:
        with pytest.raises(StoreError, match="invalid agent document"):
            parse_orchestration("agent:\n  priorities: []\n")

    def test_cycle(self) -> None:
        text = (
            "agent:\n  agent_id: a\n  priorities:\n"
            "    - {id: x, name: X, depends_on: [y]}\n"
            "    - {id: y, name: Y, depends_on: [x]}\n"
        )
        with pytest.raises(CyclicDependencyError):
            parse_orchestration(text)

    def test_unknown_task(self) -> None:
        text = "agent:\n  agent_id: a\n  priorities:\n    - {id: x, name: X, task_id: ghost}\n"
        with pytest.raises(InvalidPriorityError, match="unknown task ghost"):
            parse_orchestration(text)

    def test_bad_fact_definitions(self) -> None:
        text = (
            "agent:\n  agent_id: a\n  fact_definitions:\n"
            "    - {name: q, type: composite, conditions: [{fact: missing}]}\n"
        )
        with pytest.raises(FactDefinitionError):
            parse_orchestration(text)

    def test_duplicate_tasks(self) -> None:
        text = "agent:\n  agent_id: a\n  tasks:\n    - {id: t, name: T}\n    - {id: t, name: U}\n"
        with pytest.raises(StoreError, match="duplicate task ids: t"):
            parse_orchestration(text)


class TestYamlAgentStore:
    def test_save_and_load_document(
        self, tmp_path: Path, sample_document: AgentOrchestration
    ) -> None:
        store = YamlAgentStore(tmp_path / "agents")
        path = store.save_document(sample_document)
        assert path == tmp_path / "agents" / "realty.yaml"
        assert store.load_document("realty") == sample_document
        assert store.list_agents() == ["realty"]
        assert [entry.name for entry in path.parent.iterdir()] == ["realty.yaml"]

    def test_missing_agent(self, tmp_path: Path) -> None:
        store = YamlAgentStore(tmp_path)
        with pytest.raises(NotFoundError):
            store.load_document("ghost")
        assert YamlAgentStore(tmp_path / "nope").list_agents() == []

    def test_agent_id_mismatch(self, tmp_path: Path, sample_document: AgentOrchestration) -> None:
        (tmp_path / "other.yaml").write_text(orchestration_to_yaml(sample_document), encoding="utf-8")
        with pytest.raises(StoreError, match="agent id mismatch"):
            YamlAgentStore(tmp_path).load_document("other")

    @pytest.mark.asyncio
    async def test_save_priorities_keeps_tasks_and_facts(
        self, tmp_path: Path, sample_document: AgentOrchestration
    ) -> None:
        store = YamlAgentStore(tmp_path)
        store.save_document(sample_document)
        priorities = await store.load("realty")
        priorities[0] = priorities[0].model_copy(update={"weight": 99})
        await store.save("realty", priorities)

        reloaded = store.load_document("realty")
        assert reloaded.priorities[0].weight == 99
        assert reloaded.tasks == sample_document.tasks
        assert reloaded.fact_definitions == sample_document.fact_definitions

    @pytest.mark.asyncio
    async def test_save_creates_new_document(self, tmp_path: Path) -> None:
        store = YamlAgentStore(tmp_path)
        await store.save("fresh", [make_priority("hello")])
        assert [priority.id for priority in await store.load("fresh")] == ["hello"]

    @pytest.mark.asyncio
    async def test_rejected_save_leaves_file_untouched(
        self, tmp_path: Path, sample_document: AgentOrchestration
    ) -> None:
        store = YamlAgentStore(tmp_path)
        path = store.save_document(sample_document)
        before = path.read_text(encoding="utf-8")
        with pytest.raises(CyclicDependencyError):
            await store.save(
                "realty",
                [make_priority("a", depends_on=["b"]), make_priority("b", depends_on=["a"])],
            )
        assert path.read_text(encoding="utf-8") == before
