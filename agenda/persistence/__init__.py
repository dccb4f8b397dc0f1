from agenda.persistence.migrations import run_migrations
from agenda.persistence.sqlite_store import SQLitePriorityStore
from agenda.persistence.yaml_store import YamlAgentStore, parse_orchestration

__all__ = ["SQLitePriorityStore", "YamlAgentStore", "parse_orchestration", "run_migrations"]
