"""Rich-powered console output for textplanner."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from textplanner.planning.planner import TextPlan


class Console:
    """Terminal output for textplanner using Rich."""

    def __init__(self) -> None:
        self.console = RichConsole()

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}", soft_wrap=True)

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", soft_wrap=True)

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}", soft_wrap=True)

    def show_stats(self, stats: dict) -> None:
        """Display graph statistics in a table."""
        table = Table(title="Semantic Graph Statistics", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right", style="cyan")

        table.add_row("Vertices", str(stats.get("total_vertices", 0)))
        table.add_row("Edges", str(stats.get("total_edges", 0)))
        table.add_row("With meaning", str(stats.get("with_meaning", 0)))
        table.add_row("With mentions", str(stats.get("with_mentions", 0)))
        table.add_row("Components", str(stats.get("components", 0)))

        roles = stats.get("roles", {})
        if roles:
            table.add_section()
            for role, count in sorted(roles.items(), key=lambda x: (-x[1], x[0])):
                table.add_row(f"  {role} edges", str(count))

        self.console.print(table)

    def show_ranking(self, rows: list[tuple[str, str, float]], title: str = "Vertex Ranking") -> None:
        """Display (vertex, label, weight) rows, best first."""
        table = Table(title=title, border_style="cyan")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Vertex", style="bold")
        table.add_column("Label")
        table.add_column("Weight", justify="right", style="cyan")

        for i, (vertex, label, weight) in enumerate(rows, 1):
            table.add_row(str(i), vertex, label, f"{weight:.4f}")

        self.console.print(table)

    def show_plan(self, plan: TextPlan) -> None:
        """Display a text plan as a tree of subgraphs."""
        self.console.print(
            Panel(
                f"[bold]Vertices:[/bold] {plan.num_vertices}   "
                f"[bold]Edges:[/bold] {plan.num_edges}\n"
                f"[bold]Subgraphs:[/bold] {plan.subgraphs_extracted} extracted, "
                f"{plan.subgraphs_kept} kept\n"
                f"[bold]Order:[/bold] {plan.sorting_strategy.value}   "
                f"[dim]{plan.ranking_time_ms + plan.planning_time_ms:.1f}ms[/dim]",
                title="[bold]Text Plan[/bold]",
                border_style="cyan",
            )
        )

        tree = Tree("[bold cyan]plan[/bold cyan]")
        for item in plan.items:
            node = tree.add(
                f"[bold]{item.position}. {item.root_label or item.root}[/bold] "
                f"[dim]value={item.value:.4f} avg={item.average_weight:.4f}[/dim]"
            )
            for source, target, role in item.edges:
                node.add(f"{source} [yellow]{role}[/yellow] {target}")
        self.console.print(tree)
