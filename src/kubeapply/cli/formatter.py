# src/kubeapply/cli/formatter.py
from typing import Any, Dict, List

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from kubeapply.cli.exporter import ManifestExporter
from kubeapply.core.models import DecodeError, Manifest


class KubeFormatter:
    """
    KubeFormatter: renders decoded documents, per-item results and the
    batch summary for the CLI.
    """

    STATUS_COLORS = {
        "FOUND": "green",
        "CREATED": "green",
        "DELETED": "green",
        "FAILED": "red",
        "ABORTED": "red",
    }

    def __init__(self, console: Console):
        self.console = console
        self.exporter = ManifestExporter()

    def print_header(self, subtitle: str, version: str):
        self.console.print(Panel.fit(
            f"[bold cyan]KubeApply v{version}[/bold cyan]",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def show_document(self, manifest: Manifest):
        """Prints one decoded document as highlighted YAML."""
        text = self.exporter.export_one(manifest.content)
        title = f"{manifest.kind}/{manifest.name}" if manifest.name else manifest.kind
        self.console.print(Panel(
            Syntax(text.rstrip(), "yaml", theme="monokai"),
            title=f"[bold cyan]{escape(title)}[/bold cyan]",
            border_style="dim"
        ))

    def show_decode_errors(self, errors: List[DecodeError]):
        for err in errors:
            label = err.name or f"document #{err.index + 1}"
            self.console.print(f"[bold red]Decode error:[/bold red] {escape(label)}: {escape(str(err.cause))}")

    def show_object(self, obj: Any):
        if obj is None:
            return
        self.console.print(Syntax(self.exporter.export_one(obj).rstrip(), "yaml", theme="monokai"))

    def print_final_table(self, operation: str, reports: List[Dict[str, Any]]):
        """Builds the per-item table shown at the end of a batch."""
        table = Table(title=f"KubeApply {operation} Report", show_lines=True, header_style="bold magenta")
        table.add_column("Endpoint", style="cyan")
        table.add_column("Namespace", style="dim")
        table.add_column("Kind", style="white")
        table.add_column("Name")
        table.add_column("Status", style="bold")
        table.add_column("Result", justify="center")

        for r in reports:
            color = self.STATUS_COLORS.get(r.get("status"), "yellow")
            table.add_row(
                str(r.get("endpoint") or "-"),
                r.get("namespace") or "-",
                str(r.get("kind")),
                r.get("name") or "-",
                f"[{color}]{r.get('status')}[/{color}]",
                "✅" if r.get("success") else "❌"
            )
        self.console.print(table)

        for r in reports:
            if r.get("error"):
                self.console.print(f"[bold red]Error in {escape(r.get('name') or '?')}:[/bold red] {escape(r['error'])}")

    def print_summary(self, summary: Dict[str, Any]):
        self.console.print(Panel(
            f"[bold white]Summary Report[/bold white]\n"
            f"════════════════════════════════════════\n"
            f"Total Items:  {summary['total']}\n"
            f"Success:      [green]{summary['successful']}[/green]\n"
            f"Failed:       [red]{summary['failed']}[/red]",
            border_style="dim"
        ))
