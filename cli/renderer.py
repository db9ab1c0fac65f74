"""
Result Renderer - terminal output for monitor/fix/apply results
"""

from typing import Any, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.box import ROUNDED


SEVERITY_STYLES = {
    "critical": "bold #EF4444",
    "error": "#EF4444",
    "warning": "#FBBF24",
    "info": "#60A5FA",
}


class ResultRenderer:
    """Renders API results in the terminal with rich formatting"""

    def __init__(self, console: Console):
        self.console = console

    def _location(self, entry: Dict[str, Any]) -> str:
        source = entry.get("source") or {}
        if not source.get("file"):
            return ""
        if source.get("line") is not None:
            return f"{source['file']}:{source['line']}"
        return source["file"]

    def _entries_table(self, title: str, entries: List[Dict[str, Any]]) -> Table:
        table = Table(title=title, box=ROUNDED, show_lines=False, expand=True)
        table.add_column("Severity", no_wrap=True)
        table.add_column("Type", no_wrap=True)
        table.add_column("Message")
        table.add_column("Location", no_wrap=True)

        for entry in entries:
            severity = entry.get("severity", "")
            table.add_row(
                f"[{SEVERITY_STYLES.get(severity, '')}]{severity}[/]" if severity in SEVERITY_STYLES else severity,
                entry.get("type", ""),
                entry.get("message", ""),
                self._location(entry),
            )
        return table

    def render_monitor_result(self, result: Dict[str, Any]) -> None:
        summary = result.get("summary") or {}
        errors = result.get("errors") or []
        warnings = result.get("warnings") or []

        if result.get("monitoringError"):
            self.console.print(f"[#EF4444]✗ Monitoring failed:[/#EF4444] {result['monitoringError']}")
        elif not result.get("success", False):
            self.console.print("[#EF4444]✗ Preview could not be loaded[/#EF4444]")
        elif result.get("hasErrors"):
            self.console.print(f"[#EF4444]✗ {len(errors)} runtime error(s) detected[/#EF4444]")
        else:
            self.console.print("[#4ADE80]✓ No blocking runtime errors[/#4ADE80]")

        if errors:
            self.console.print(self._entries_table("Errors", errors))
        if warnings:
            self.console.print(self._entries_table("Warnings", warnings))

        self.console.print(
            f"[dim]total={summary.get('totalErrors', 0)} "
            f"console={summary.get('consoleErrors', 0)} "
            f"network={summary.get('networkErrors', 0)} "
            f"exceptions={summary.get('exceptions', 0)} "
            f"duration={result.get('monitorDuration', 0)}ms[/dim]"
        )

    def render_apply_result(self, result: Dict[str, Any]) -> None:
        if result.get("success"):
            files = "\n".join(f"  • {path}" for path in result.get("modifiedFiles", []))
            self.console.print(Panel(files or "(none)", title="[bold]Modified files[/bold]", border_style="green"))
        else:
            self.console.print(f"[#EF4444]✗ Fix not applied:[/#EF4444] {result.get('error', 'unknown error')}")

        if result.get("explanation"):
            self.console.print(f"[dim]{result['explanation']}[/dim]")
