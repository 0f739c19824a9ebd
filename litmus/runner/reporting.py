from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from ..constants import CONSOLE_EXCERPT_LIMIT
from ..models import VerificationResult, VerificationSummary


def _failed_scenario_step(result: VerificationResult) -> str | None:
    # failed_step indexes actions; it only names a scenario step when it is in range
    if not result.failed_step:
        return None
    steps = result.scenario.steps
    if 1 <= result.failed_step <= len(steps):
        return steps[result.failed_step - 1]
    return None


def format_failure_report(summary: VerificationSummary) -> str:
    """Markdown report of failing scenarios, fed to the coding agent's next prompt."""
    lines = [f"## Verification Results: {summary.passed}/{summary.total} passing", ""]

    failures = summary.failures()
    if not failures:
        return "\n".join(lines)

    lines.extend([f"### {len(failures)} Failing Scenarios", ""])
    for result in failures:
        lines.append(f"#### {result.scenario.file_path}")
        lines.append(f"**Scenario:** {result.scenario.name}")
        if result.failed_step:
            step_text = _failed_scenario_step(result) or result.expected or ""
            lines.append(f"**Failed at step {result.failed_step}:** {step_text}")
        if result.expected:
            lines.append(f"**Expected:** {result.expected}")
        if result.actual:
            lines.append(f"**Actual:** {result.actual}")
        if result.console_logs:
            lines.append("**Console:**")
            lines.extend(f"  {entry}" for entry in result.console_logs[:CONSOLE_EXCERPT_LIMIT])
        lines.append("")

    return "\n".join(lines)


def print_summary(summary: VerificationSummary, console: Console | None = None) -> None:
    console = console or Console()
    console.print()
    console.print("[bold]Results[/bold]")

    if summary.failed == 0:
        console.print(f"[green]pass[/green] All {summary.total} scenarios passing")
    else:
        console.print(f"[red]fail[/red] {summary.failed}/{summary.total} scenarios failed")
        console.print()
        console.print("[bold]Failures:[/bold]")
        for result in summary.failures():
            scenario = result.scenario
            console.print()
            console.print(f"[red]fail[/red] {escape(scenario.category)}/{escape(scenario.name)}")
            if result.failed_step:
                console.print(f"[dim]  Step {result.failed_step}: {escape(result.expected or '')}[/dim]")
            if result.actual:
                console.print(f"[dim]  Got: {escape(result.actual[:200])}[/dim]")
            if result.screenshot_path:
                console.print(f"[dim]  Screenshot: {escape(result.screenshot_path)}[/dim]")

    console.print(f"\n[dim]Duration: {summary.duration_ms / 1000:.1f}s[/dim]")
