"""
Scenario storage: markdown files with a metadata header and
Context / Steps / Expected sections.
"""

from .loader import find_scenario_files, load_all_scenarios
from .parser import parse_scenario, parse_scenario_file
from .writer import format_scenario, slugify, write_scenario_file

__all__ = [
    "find_scenario_files",
    "format_scenario",
    "load_all_scenarios",
    "parse_scenario",
    "parse_scenario_file",
    "slugify",
    "write_scenario_file",
]
