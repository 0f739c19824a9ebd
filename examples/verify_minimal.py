"""
Example: one verification run against an app that is already running.

Writes a single scenario, translates it with a fixed in-process provider (no
API key needed) and executes it in Chromium:

scenario file -> translate -> execute -> summary

Usage:
  python examples/verify_minimal.py http://localhost:3000
"""

import asyncio
import json
import sys
import tempfile
from pathlib import Path

from litmus import ActionTranslator, LitmusConfig, ScenarioInput, VerificationRunner
from litmus.llm_provider import LLMProvider, LLMResponse
from litmus.runner import print_summary
from litmus.scenarios import write_scenario_file


class FixedActionsProvider(LLMProvider):
    """Always answers with the same action list."""

    def __init__(self, actions: list[dict]):
        super().__init__(model="fixed-actions")
        self._content = json.dumps(actions)

    def generate(self, system_prompt: str, user_prompt: str, **kwargs) -> LLMResponse:
        _ = system_prompt, user_prompt, kwargs
        return LLMResponse(content=self._content, model_name=self.model_name)


async def main(base_url: str) -> None:
    project_dir = Path(tempfile.mkdtemp(prefix="litmus-example-"))
    config = LitmusConfig(base_url=base_url)

    write_scenario_file(
        ScenarioInput(
            name="Home page loads",
            category="smoke",
            steps=["Open the home page"],
            expected=["A heading is visible"],
        ),
        project_dir / config.scenarios_dir,
    )

    provider = FixedActionsProvider(
        [
            {"type": "navigate", "url": "/", "description": "Open the home page"},
            {"type": "assert", "selector": "role=heading", "description": "A heading is visible"},
        ]
    )
    runner = VerificationRunner(config, ActionTranslator(provider), project_dir=project_dir)
    try:
        summary = await runner.run()
    finally:
        runner.dev_server.stop()

    print_summary(summary)


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "http://localhost:3000"))
