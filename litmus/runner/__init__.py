"""
Verification engine: scenario → actions → browser → results.
"""

from .executor import BrowserManager, ExecutorOptions, ScenarioExecutor, execute_action
from .orchestrator import VerificationRunner, filter_scenarios, run_setup_command
from .reporting import format_failure_report, print_summary
from .selectors import ParsedSelector, SelectorKind, classify_selector, resolve_locator
from .translator import ActionTranslator, parse_actions

__all__ = [
    "ActionTranslator",
    "BrowserManager",
    "ExecutorOptions",
    "ParsedSelector",
    "ScenarioExecutor",
    "SelectorKind",
    "VerificationRunner",
    "classify_selector",
    "execute_action",
    "filter_scenarios",
    "format_failure_report",
    "parse_actions",
    "print_summary",
    "resolve_locator",
    "run_setup_command",
]
