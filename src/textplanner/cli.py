"""Command-line interface for textplanner."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from textplanner import __version__
from textplanner.config import (
    CONFIG_FILE,
    PlannerConfig,
    find_config_file,
    load_config,
    save_config,
    set_config_value,
)
from textplanner.exceptions import TextPlannerError
from textplanner.ui.console import Console

console = Console()


def _load_planner_config(config_path: str | None) -> PlannerConfig:
    """Load the given config file, or the nearest textplanner.json, or defaults."""
    path = Path(config_path) if config_path else find_config_file()
    if path is None:
        return PlannerConfig()
    try:
        return load_config(path)
    except TextPlannerError as e:
        console.error(str(e))
        sys.exit(1)


def _load_document(graph_path: str):
    from textplanner.graph.io import load_graph

    try:
        return load_graph(Path(graph_path))
    except TextPlannerError as e:
        console.error(str(e))
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="textplanner")
@click.option("--verbose", "-v", is_flag=True, help="Log pipeline progress to stderr.")
def main(verbose: bool):
    """textplanner - rank semantic graphs and plan what to say."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.argument("graph_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "-c", "config_path", default=None, help="Configuration file.")
@click.option("--top", "-n", default=20, type=int, help="Rows to show (default: 20).")
def rank(graph_file: str, config_path: str | None, top: int):
    """Rank the vertices of a JSON graph document.

    Examples:

        textplanner rank graph.json

        textplanner rank graph.json --top 5 --config textplanner.json
    """
    config = _load_planner_config(config_path)
    doc = _load_document(graph_file)

    from textplanner.ranking.ranker import rank_vertices

    try:
        ranks = rank_vertices(doc.graph, doc.weight, doc.similarity, config.options)
    except TextPlannerError as e:
        console.error(str(e))
        sys.exit(1)

    if not ranks:
        console.warning("Graph has no vertices")
        return

    ordered = sorted(ranks.items(), key=lambda x: (-x[1], x[0]))[:top]
    console.show_ranking([(v, doc.graph.label(v), r) for v, r in ordered])


@main.command()
@click.argument("graph_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "-c", "config_path", default=None, help="Configuration file.")
@click.option("--json", "as_json", is_flag=True, help="Print the plan as JSON.")
def plan(graph_file: str, config_path: str | None, as_json: bool):
    """Build a text plan from a JSON graph document.

    Ranks the graph, extracts subgraphs around the most relevant vertices,
    drops redundant ones and orders the rest.

    Examples:

        textplanner plan graph.json

        textplanner plan graph.json --json > plan.json
    """
    config = _load_planner_config(config_path)
    doc = _load_document(graph_file)

    from textplanner.extraction.semantics import get_semantics
    from textplanner.planning.planner import TextPlanner

    try:
        planner = TextPlanner(config.options, get_semantics(config.semantics))
        result = planner.run(doc.graph, doc.weight, doc.similarity)
    except (TextPlannerError, ValueError) as e:
        console.error(str(e))
        sys.exit(1)

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return

    console.show_stats(doc.graph.get_stats())
    console.show_plan(result)


@main.command("config")
@click.argument("action", type=click.Choice(["init", "show", "set"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=".", help="Directory holding textplanner.json.")
def config_cmd(action: str, key: str | None, value: str | None, path: str):
    """Manage textplanner configuration."""
    root = Path(path)
    try:
        config = load_config(root)
    except TextPlannerError as e:
        console.error(str(e))
        sys.exit(1)

    if action == "init":
        if (root / CONFIG_FILE).exists():
            console.warning(f"{root / CONFIG_FILE} already exists")
            return
        root.mkdir(parents=True, exist_ok=True)
        saved = save_config(root, PlannerConfig(name=root.resolve().name))
        console.success(f"Wrote {saved}")
    elif action == "show":
        console.console.print_json(json.dumps(config.model_dump(mode="json"), indent=2))
    elif action == "set":
        if not key or value is None:
            console.error("Usage: textplanner config set <key> <value>")
            sys.exit(1)
        try:
            # Try to parse as JSON for non-string values
            try:
                parsed_value = json.loads(value)
            except json.JSONDecodeError:
                parsed_value = value

            config = set_config_value(config, key, parsed_value)
            root.mkdir(parents=True, exist_ok=True)
            save_config(root, config)
            console.success(f"Set {key} = {parsed_value}")
        except KeyError:
            console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except TextPlannerError as e:
            console.error(str(e))
            sys.exit(1)


if __name__ == "__main__":
    main()
