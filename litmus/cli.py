"""litmus command line: init, verify, loop."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from .config import LitmusConfig, load_config
from .constants import CONFIG_FILENAME, DEFAULT_ARTIFACTS_DIR, DEFAULT_SCENARIOS_DIR
from .dev_server import DevServer
from .exceptions import LitmusError
from .failure_artifacts import RunArtifacts
from .llm_provider import AnthropicProvider
from .loop import CircuitBreaker, CircuitBreakerConfig, CodingAgent, CodingAgentOptions, IterationController
from .models import VerificationResult
from .runner import ActionTranslator, BrowserManager, VerificationRunner, print_summary

logger = logging.getLogger(__name__)

app = typer.Typer(help="Verify behavioral scenarios against a live app and iterate until they pass")
console = Console()

CONFIG_TEMPLATE = f"""base_url = "http://localhost:3000"
# dev_command = "npm run dev"
# setup = "npm run db:seed"
scenarios_dir = "{DEFAULT_SCENARIOS_DIR}"

[loop]
max_iterations = 15
"""


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("litmus").setLevel(logging.DEBUG if verbose else logging.INFO)


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]fail[/red] {escape(message)}")
    return typer.Exit(code=1)


def _load(project: Path) -> tuple[Path, LitmusConfig]:
    project_dir = project.resolve()
    load_dotenv(project_dir / ".env")
    try:
        return project_dir, load_config(project_dir)
    except LitmusError as e:
        raise _fail(str(e))


def _build_runner(
    config: LitmusConfig, project_dir: Path, *, headed: bool = False, model: str | None = None
) -> VerificationRunner:
    model = model or config.model
    translator = ActionTranslator(AnthropicProvider(model=model), model=model)
    return VerificationRunner(
        config,
        translator,
        project_dir=project_dir,
        browser_manager=BrowserManager(headed=headed),
        dev_server=DevServer(
            cwd=project_dir, port=config.port, ready_timeout_s=config.server_timeout_s
        ),
        artifacts=RunArtifacts(project_dir / config.artifacts_dir),
    )


def _print_result(index: int, total: int, result: VerificationResult) -> None:
    mark = "[green]✓[/green]" if result.passed else "[red]✗[/red]"
    scenario = result.scenario
    console.print(f"  {mark} [{index}/{total}] {escape(scenario.category)}/{escape(scenario.name)}")
    if not result.passed and result.actual:
        console.print(f"[dim]      {escape(result.actual[:120])}[/dim]")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    _setup_logging(verbose)


@app.command()
def init(
    project: Path = typer.Option(Path("."), "--project", help="Project directory"),
) -> None:
    """Create litmus.toml and the scenarios directory."""
    project_dir = project.resolve()
    config_path = project_dir / CONFIG_FILENAME
    if config_path.exists():
        raise _fail(f"{CONFIG_FILENAME} already exists")

    config_path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    (project_dir / DEFAULT_SCENARIOS_DIR).mkdir(parents=True, exist_ok=True)
    (project_dir / DEFAULT_ARTIFACTS_DIR).mkdir(parents=True, exist_ok=True)

    gitignore = project_dir / ".gitignore"
    entry = f"{DEFAULT_ARTIFACTS_DIR}/"
    existing = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    if entry not in existing.splitlines():
        prefix = "" if not existing or existing.endswith("\n") else "\n"
        gitignore.write_text(f"{existing}{prefix}{entry}\n", encoding="utf-8")

    console.print(f"[green]pass[/green] Created {CONFIG_FILENAME} and {DEFAULT_SCENARIOS_DIR}/")


@app.command()
def verify(
    headed: bool = typer.Option(False, "--headed", help="Run the browser visibly"),
    filter: Optional[str] = typer.Option(
        None, "--filter", "-f", help="Only run scenarios matching this pattern"
    ),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model for translation"),
    project: Path = typer.Option(Path("."), "--project", help="Project directory"),
) -> None:
    """Run all scenarios against the running app."""
    project_dir, config = _load(project)
    runner = None
    try:
        runner = _build_runner(config, project_dir, headed=headed, model=model)
        console.print("\n[bold]Running scenarios[/bold]\n")
        summary = asyncio.run(runner.run(filter, on_result=_print_result))
    except Exception as e:
        raise _fail(str(e))
    finally:
        if runner is not None:
            try:
                runner.dev_server.stop()
            except Exception as e:
                logger.debug(f"Ignoring dev server shutdown error: {e}")

    print_summary(summary, console)
    if summary.failed > 0:
        raise typer.Exit(code=1)


@app.command()
def loop(
    max_iterations: Optional[int] = typer.Option(
        None, "--max-iterations", "-n", help="Maximum iterations before stopping"
    ),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model for the coding agent"),
    project: Path = typer.Option(Path("."), "--project", help="Project directory"),
) -> None:
    """Code until all scenarios pass."""
    project_dir, config = _load(project)
    loop_config = config.loop
    try:
        runner = _build_runner(config, project_dir)
    except LitmusError as e:
        raise _fail(str(e))

    agent = CodingAgent(
        project_dir,
        config.scenarios_dir,
        runner.artifacts,
        CodingAgentOptions(
            command=loop_config.agent_command,
            allowed_tools=loop_config.allowed_tools,
            timeout_s=loop_config.agent_timeout_s,
            model=model or config.loop_model,
        ),
    )
    controller = IterationController(
        runner,
        agent,
        runner.artifacts,
        max_iterations=max_iterations or loop_config.max_iterations,
        breaker=CircuitBreaker(
            CircuitBreakerConfig(
                min_history=loop_config.min_history,
                stagnation_window=loop_config.stagnation_window,
                regression_margin=loop_config.regression_margin,
                stuck_window=loop_config.stuck_window,
                oscillation_period=loop_config.oscillation_period,
            )
        ),
        browser_manager=runner.browser_manager,
        dev_server=runner.dev_server,
    )
    result = asyncio.run(controller.run())

    if result.final_summary is not None:
        print_summary(result.final_summary, console)

    if result.success:
        plural = "" if result.iterations == 1 else "s"
        console.print("\n[bold]Done![/bold]")
        console.print(
            f"[green]pass[/green] All scenarios passing after {result.iterations} iteration{plural}"
        )
        return

    console.print("\n[bold]Loop stopped[/bold]")
    if result.stopped_reason:
        console.print(f"[yellow]warn[/yellow] {escape(result.stopped_reason)}")
    if result.stuck_scenarios:
        console.print("[bold]Persistently failing scenarios:[/bold]")
        for path in result.stuck_scenarios:
            console.print(f"[dim]  {escape(path)}[/dim]")
    console.print(
        "[blue]info[/blue] Review the failing scenarios and either fix them or run `litmus loop` again."
    )
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
