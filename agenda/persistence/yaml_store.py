"""Filesystem-backed agent documents, one YAML file per agent."""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

import yaml
from pydantic import ValidationError

from agenda.errors import FactDefinitionError, NotFoundError, PriorityValidationError, StoreError
from agenda.guards.facts import validate_fact_definitions
from agenda.models.orchestration import AgentOrchestration
from agenda.models.priorities import Priority
from agenda.priorities.catalog import InMemoryTaskCatalog
from agenda.priorities.registry import PriorityRegistry

logger = logging.getLogger(__name__)


def parse_orchestration(text: str) -> AgentOrchestration:
    """Parse YAML text into a validated agent document."""
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise StoreError(f"invalid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise StoreError("agent document must be a YAML mapping")
    raw = raw.get("agent", raw)
    if not isinstance(raw, dict):
        raise StoreError("agent section must be a mapping")
    try:
        document = AgentOrchestration.model_validate(raw)
    except ValidationError as exc:
        raise StoreError(f"invalid agent document: {exc}") from exc
    validate_orchestration(document)
    return document


def validate_orchestration(document: AgentOrchestration) -> None:
    """Run every whole-document check; raises on the first structural problem."""
    errors = validate_fact_definitions(document.fact_definitions)
    if errors:
        raise FactDefinitionError(errors)
    task_ids = [task.id for task in document.tasks]
    duplicates = sorted({task_id for task_id in task_ids if task_ids.count(task_id) > 1})
    if duplicates:
        raise StoreError(f"duplicate task ids: {', '.join(duplicates)}")
    catalog = InMemoryTaskCatalog(document.tasks)
    PriorityRegistry.validate_set(document.priorities, task_catalog=catalog)


def orchestration_to_yaml(document: AgentOrchestration) -> str:
    data = document.model_dump(mode="json", by_alias=True, exclude_none=True)
    return yaml.safe_dump({"agent": data}, sort_keys=False, allow_unicode=True)


class YamlAgentStore:
    def __init__(self, agents_dir: Path) -> None:
        self._dir = agents_dir

    def _path_for(self, agent_id: str) -> Path:
        return self._dir / f"{agent_id}.yaml"

    def list_agents(self) -> list[str]:
        if not self._dir.exists():
            return []
        return [path.stem for path in sorted(self._dir.glob("*.yaml"))]

    def load_document(self, agent_id: str) -> AgentOrchestration:
        path = self._path_for(agent_id)
        if not path.exists():
            raise NotFoundError(agent_id)
        document = parse_orchestration(path.read_text(encoding="utf-8"))
        if document.agent_id != agent_id:
            raise StoreError(f"agent id mismatch in {path}: {document.agent_id}")
        return document

    def save_document(self, document: AgentOrchestration) -> Path:
        """Validate, then atomically replace the agent's file."""
        validate_orchestration(document)
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self._path_for(document.agent_id)
        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{document.agent_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(orchestration_to_yaml(document))
            os.replace(tmp_name, path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(f"writing {path} failed: {exc}") from exc
        logger.info(
            "Saved agent %s (%d priorities) to %s",
            document.agent_id,
            len(document.priorities),
            path,
        )
        return path

    async def load(self, agent_id: str) -> list[Priority]:
        return self.load_document(agent_id).priorities

    async def save(self, agent_id: str, priorities: Sequence[Priority]) -> None:
        try:
            document = self.load_document(agent_id)
        except NotFoundError:
            document = AgentOrchestration(agent_id=agent_id)
        try:
            updated = document.model_copy(update={"priorities": list(priorities)})
            self.save_document(updated)
        except PriorityValidationError:
            logger.warning("Rejected priority save for agent %s", agent_id)
            raise


__all__ = [
    "YamlAgentStore",
    "orchestration_to_yaml",
    "parse_orchestration",
    "validate_orchestration",
]
