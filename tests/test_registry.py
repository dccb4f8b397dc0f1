from __future__ import annotations

import pytest
from agenda.errors import (
    CyclicDependencyError,
    DanglingDependencyError,
    DuplicateIdError,
    InvalidPriorityError,
    InvalidWeightError,
    MutuallyExclusiveFieldError,
    NotFoundError,
)
from agenda.models.priorities import Priority
from agenda.models.tasks import Task
from agenda.priorities.catalog import InMemoryTaskCatalog
from agenda.priorities.registry import PriorityRegistry, build_priority, order_by_weight

from tests.helpers import make_priority


@pytest.fixture
def registry() -> PriorityRegistry:
    return PriorityRegistry(
        [
            make_priority("welcome", weight=90),
            make_priority("qualify", weight=70, depends_on=["welcome"]),
            make_priority("close", weight=40, depends_on=["qualify"]),
        ],
        agent_id="agent-1",
    )


class TestAdd:
    def test_add_and_get(self, registry: PriorityRegistry) -> None:
        registry.add(make_priority("faq", weight=20))
        assert "faq" in registry
        assert registry.get("faq").weight == 20
        assert len(registry) == 4

    def test_create_slugifies_name(self) -> None:
        registry = PriorityRegistry()
        created = registry.create("Agendar Visita", weight=80)
        assert created.id == "priority_agendar_visita"
        assert registry.get("priority_agendar_visita").name == "Agendar Visita"

    def test_duplicate_id(self, registry: PriorityRegistry) -> None:
        with pytest.raises(DuplicateIdError):
            registry.add(make_priority("welcome"))

    def test_dangling_dependency(self, registry: PriorityRegistry) -> None:
        with pytest.raises(DanglingDependencyError) as excinfo:
            registry.add(make_priority("upsell", depends_on=["ghost"]))
        assert excinfo.value.missing == ["ghost"]
        assert "upsell" not in registry

    def test_unknown_task_reference(self) -> None:
        registry = PriorityRegistry(task_catalog=InMemoryTaskCatalog([Task(id="t1", name="T")]))
        registry.add(make_priority("ok", task_id="t1"))
        with pytest.raises(InvalidPriorityError, match="unknown task t2"):
            registry.add(make_priority("bad", task_id="t2"))

    def test_unknown_task_in_action(self) -> None:
        registry = PriorityRegistry(task_catalog=InMemoryTaskCatalog())
        with pytest.raises(InvalidPriorityError, match="unknown task t9"):
            registry.add(
                make_priority(
                    "bad",
                    actions=[{"type": "execute_task", "name": "run", "params": {"task_id": "t9"}}],
                )
            )


class TestReads:
    def test_get_missing(self, registry: PriorityRegistry) -> None:
        with pytest.raises(NotFoundError):
            registry.get("ghost")

    def test_get_returns_copy(self, registry: PriorityRegistry) -> None:
        copy = registry.get("welcome")
        copy.triggers.append("mutated")
        assert "mutated" not in registry.get("welcome").triggers

    def test_list_keeps_insertion_order(self, registry: PriorityRegistry) -> None:
        assert [priority.id for priority in registry.list()] == ["welcome", "qualify", "close"]

    def test_snapshot_is_isolated_from_later_edits(self, registry: PriorityRegistry) -> None:
        snapshot = registry.snapshot()
        registry.update("welcome", {"weight": 10})
        registry.remove("close")
        assert [priority.id for priority in snapshot] == ["welcome", "qualify", "close"]
        assert snapshot[0].weight == 90

    def test_ordered_is_recomputed(self, registry: PriorityRegistry) -> None:
        registry.update("close", {"weight": 95})
        assert [priority.id for priority in registry.ordered()] == ["close", "welcome", "qualify"]


class TestUpdate:
    def test_partial_update(self, registry: PriorityRegistry) -> None:
        result = registry.update("welcome", {"triggers": ["buenas"], "weight": 85})
        assert result.priority.triggers == ["buenas"]
        assert result.priority.weight == 85
        assert result.cleared_fields == ()

    def test_id_is_immutable(self, registry: PriorityRegistry) -> None:
        with pytest.raises(InvalidPriorityError, match="immutable"):
            registry.update("welcome", {"id": "hello"})

    def test_unknown_field(self, registry: PriorityRegistry) -> None:
        with pytest.raises(InvalidPriorityError, match="unknown fields colour"):
            registry.update("welcome", {"colour": "red"})

    def test_missing_priority(self, registry: PriorityRegistry) -> None:
        with pytest.raises(NotFoundError):
            registry.update("ghost", {"weight": 10})

    @pytest.mark.parametrize("weight", [0, 101, "high", True])
    def test_invalid_weight(self, registry: PriorityRegistry, weight: object) -> None:
        with pytest.raises(InvalidWeightError):
            registry.update("welcome", {"weight": weight})
        assert registry.get("welcome").weight == 90

    def test_setting_task_clears_criteria(self) -> None:
        registry = PriorityRegistry([make_priority("p", completion_criteria="Say hi")])
        result = registry.update("p", {"task_id": "task_x"})
        assert result.priority.task_id == "task_x"
        assert result.priority.completion_criteria == ""
        assert result.cleared_fields == ("completion_criteria",)

    def test_setting_task_without_prior_criteria_reports_nothing(self) -> None:
        registry = PriorityRegistry([make_priority("p")])
        assert registry.update("p", {"task_id": "task_x"}).cleared_fields == ()

    def test_blank_task_keeps_criteria(self) -> None:
        registry = PriorityRegistry([make_priority("p", completion_criteria="keep me")])
        result = registry.update("p", {"task_id": "   "})
        assert result.priority.task_id is None
        assert result.priority.completion_criteria == "keep me"
        assert result.cleared_fields == ()

    def test_id_survives_renames(self) -> None:
        registry = PriorityRegistry()
        created = registry.create("Agendar Visita", weight=80)
        for name in ("Agendar Cita", "Visita Express", "Otra Cosa"):
            result = registry.update(created.id, {"name": name})
            assert result.priority.id == "priority_agendar_visita"
        renamed = registry.get("priority_agendar_visita")
        assert renamed.id == created.id
        assert renamed.name == "Otra Cosa"
        assert [priority.id for priority in registry.list()] == ["priority_agendar_visita"]

    def test_both_task_and_criteria(self, registry: PriorityRegistry) -> None:
        with pytest.raises(MutuallyExclusiveFieldError):
            registry.update("welcome", {"task_id": "t", "completion_criteria": "x"})

    def test_criteria_on_task_priority(self) -> None:
        registry = PriorityRegistry([make_priority("p", task_id="t")])
        with pytest.raises(MutuallyExclusiveFieldError):
            registry.update("p", {"completion_criteria": "x"})

    def test_cycle_rejected_and_registry_unchanged(self, registry: PriorityRegistry) -> None:
        with pytest.raises(CyclicDependencyError) as excinfo:
            registry.update("welcome", {"depends_on": ["close"]})
        assert excinfo.value.cycle[0] == excinfo.value.cycle[-1] == "welcome"
        assert set(excinfo.value.cycle) == {"welcome", "qualify", "close"}
        assert registry.get("welcome").depends_on == []

    def test_self_dependency(self, registry: PriorityRegistry) -> None:
        with pytest.raises(CyclicDependencyError) as excinfo:
            registry.update("welcome", {"depends_on": ["welcome"]})
        assert excinfo.value.cycle == ["welcome", "welcome"]

    def test_dangling_on_update(self, registry: PriorityRegistry) -> None:
        with pytest.raises(DanglingDependencyError):
            registry.update("close", {"depends_on": ["ghost"]})


class TestRemove:
    def test_remove_cascades(self, registry: PriorityRegistry) -> None:
        result = registry.remove("welcome")
        assert result.removed.id == "welcome"
        assert result.cascaded == ("qualify",)
        assert registry.get("qualify").depends_on == []
        assert "welcome" not in registry

    def test_remove_missing(self, registry: PriorityRegistry) -> None:
        with pytest.raises(NotFoundError):
            registry.remove("ghost")


class TestReplaceAll:
    def test_replace_is_atomic(self, registry: PriorityRegistry) -> None:
        with pytest.raises(CyclicDependencyError):
            registry.replace_all(
                [
                    make_priority("a", depends_on=["b"]),
                    make_priority("b", depends_on=["a"]),
                ]
            )
        assert [priority.id for priority in registry.list()] == ["welcome", "qualify", "close"]

    def test_replace_rejects_duplicates(self, registry: PriorityRegistry) -> None:
        with pytest.raises(DuplicateIdError):
            registry.replace_all([make_priority("a"), make_priority("a")])

    def test_replace_swaps_contents(self, registry: PriorityRegistry) -> None:
        registry.replace_all([make_priority("solo")])
        assert [priority.id for priority in registry.list()] == ["solo"]


class TestBuildPriority:
    def test_weight_checked_first(self) -> None:
        with pytest.raises(InvalidWeightError):
            build_priority({"id": "p", "name": "P", "weight": 0, "depends_on": ["p"]})

    def test_self_dependency(self) -> None:
        with pytest.raises(CyclicDependencyError):
            build_priority({"id": "p", "name": "P", "depends_on": ["p"]})

    def test_mutually_exclusive(self) -> None:
        with pytest.raises(MutuallyExclusiveFieldError):
            build_priority({"id": "p", "name": "P", "task_id": "t", "completion_criteria": "x"})

    def test_malformed(self) -> None:
        with pytest.raises(InvalidPriorityError):
            build_priority({"id": "p"})


def test_order_by_weight_is_stable() -> None:
    priorities = [
        Priority(id="a", name="A", weight=50),
        Priority(id="b", name="B", weight=80),
        Priority(id="c", name="C", weight=50),
    ]
    assert [priority.id for priority in order_by_weight(priorities)] == ["b", "a", "c"]
