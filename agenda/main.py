"""agenda CLI entry point."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import click
import yaml

from agenda.config import AgendaSettings, load_config
from agenda.core.logging import setup_logging
from agenda.errors import AgendaError
from agenda.guards.facts import FactDeriver
from agenda.guards.validator import describe_guard, validate_guard
from agenda.models.conversation import ConversationState
from agenda.models.effects import Activation, RequestData, RunInline, RunTask
from agenda.models.orchestration import AgentOrchestration
from agenda.models.priorities import COMMON_DATA_FIELDS
from agenda.persistence.migrations import run_migrations
from agenda.persistence.sqlite_store import SQLitePriorityStore
from agenda.persistence.yaml_store import YamlAgentStore, parse_orchestration
from agenda.priorities.engine import PriorityEngine
from agenda.priorities.registry import order_by_weight
from agenda.triggers.matcher import PhraseTriggerMatcher


class SimulatedExecutor:
    """Prints each effect and reports every runnable effect as finished."""

    async def execute(self, activation: Activation, state: ConversationState) -> bool:
        effect = activation.effect
        if isinstance(effect, RequestData):
            click.echo(f"  ask for: {', '.join(sorted(effect.fields))}")
            return False
        if isinstance(effect, RunTask):
            click.echo(f"  run task: {effect.task_id}")
        elif isinstance(effect, RunInline) and effect.completion_criteria:
            click.echo(f"  run inline: {effect.completion_criteria}")
        for action in effect.actions:
            click.echo(f"  action [{action.type.value}]: {action.name}")
        return True


def _load_settings(config_path: str | None) -> AgendaSettings:
    if config_path is None:
        return AgendaSettings()
    return load_config(config_path)


def _read_document(path: Path) -> AgentOrchestration:
    return parse_orchestration(path.read_text(encoding="utf-8"))


def _parse_data(pairs: tuple[str, ...]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--data")
        parsed = yaml.safe_load(raw)
        data[key.strip()] = raw if parsed is None and raw else parsed
    return data


@click.group()
@click.option("--config", "config_path", default=None, help="YAML settings file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """Author and evaluate agent priorities."""
    settings = _load_settings(config_path)
    setup_logging(settings.logging.level, json_output=settings.logging.json_output)
    ctx.obj = settings


@cli.command("validate")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate_command(path: Path) -> None:
    """Check an agent document's structure and guard fact references."""
    try:
        document = _read_document(path)
    except AgendaError as exc:
        raise click.ClickException(str(exc)) from exc

    available = {
        *COMMON_DATA_FIELDS,
        *FactDeriver(document.fact_definitions).names,
        *(field for priority in document.priorities for field in priority.required_data),
    }
    problems = [
        f"{priority.id}: {error}"
        for priority in document.priorities
        for error in validate_guard(priority.guard, available)
    ]
    for problem in problems:
        click.echo(problem, err=True)
    if problems:
        raise SystemExit(1)
    click.echo(f"{document.agent_id}: {len(document.priorities)} priorities OK")


@cli.command("order")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def order_command(path: Path) -> None:
    """List priorities heaviest first, as the selector ranks them."""
    try:
        document = _read_document(path)
    except AgendaError as exc:
        raise click.ClickException(str(exc)) from exc
    for priority in order_by_weight(document.priorities):
        flags = []
        if not priority.enabled:
            flags.append("disabled")
        if priority.execute_once:
            flags.append("once")
        if priority.depends_on:
            flags.append(f"after {', '.join(priority.depends_on)}")
        suffix = f" [{'; '.join(flags)}]" if flags else ""
        click.echo(f"{priority.weight:>3}  {priority.id}{suffix}")
        if priority.guard is not None:
            click.echo(f"     when {describe_guard(priority.guard)}")


@cli.command("simulate")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-m", "--message", "messages", multiple=True, required=True, help="One user turn.")
@click.option("-d", "--data", "data_pairs", multiple=True, help="Known field as key=value.")
@click.pass_obj
def simulate_command(
    settings: AgendaSettings,
    path: Path,
    messages: tuple[str, ...],
    data_pairs: tuple[str, ...],
) -> None:
    """Run messages through a fresh conversation and print each activation."""
    try:
        document = _read_document(path)
    except AgendaError as exc:
        raise click.ClickException(str(exc)) from exc
    initial = _parse_data(data_pairs)
    engine = PriorityEngine.from_orchestration(
        document,
        trigger_matcher=PhraseTriggerMatcher(
            fold_accents=settings.triggers.fold_accents,
            min_token_overlap=settings.triggers.min_token_overlap,
        ),
        action_executor=SimulatedExecutor(),
    )

    async def _run() -> None:
        session = engine.start_conversation()
        for index, message in enumerate(messages):
            outcome = await session.process_turn(message, initial if index == 0 else None)
            if outcome.activation is None:
                click.echo(f"turn {outcome.turn}: no activation")
                continue
            status = "completed" if outcome.completed else outcome.activation.effect.kind
            click.echo(f"turn {outcome.turn}: {outcome.activation.priority_id} ({status})")

    try:
        asyncio.run(_run())
    except AgendaError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--db", "db_path", default=None, help="SQLite database (defaults to storage.db_path).")
@click.pass_obj
def import_command(settings: AgendaSettings, path: Path, db_path: str | None) -> None:
    """Store a YAML agent document, replacing what was stored for that agent."""
    target = Path(db_path) if db_path else settings.storage.db_path
    target.parent.mkdir(parents=True, exist_ok=True)

    async def _run() -> AgentOrchestration:
        document = _read_document(path)
        await run_migrations(str(target))
        await SQLitePriorityStore(str(target)).save_document(document)
        return document

    try:
        document = asyncio.run(_run())
    except AgendaError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"imported {len(document.priorities)} priorities for {document.agent_id}")


@cli.command("export")
@click.argument("agent_id")
@click.option("--db", "db_path", default=None, help="SQLite database (defaults to storage.db_path).")
@click.option(
    "--out",
    "out_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for <agent_id>.yaml (defaults to storage.agents_dir).",
)
@click.pass_obj
def export_command(
    settings: AgendaSettings,
    agent_id: str,
    db_path: str | None,
    out_dir: Path | None,
) -> None:
    """Write a stored agent to <agent_id>.yaml.

    An existing file keeps its tasks and fact definitions and only has its
    priorities replaced; otherwise the whole stored document is written.
    """
    source = db_path or str(settings.storage.db_path)
    store = YamlAgentStore(out_dir or settings.storage.agents_dir)

    async def _run() -> int:
        await run_migrations(source)
        stored = await SQLitePriorityStore(source).load_document(agent_id)
        if agent_id in store.list_agents():
            await store.save(agent_id, stored.priorities)
        else:
            store.save_document(stored)
        return len(stored.priorities)

    try:
        count = asyncio.run(_run())
    except AgendaError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"exported {count} priorities for {agent_id}")


if __name__ == "__main__":
    cli()
