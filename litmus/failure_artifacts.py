from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class RunArtifacts:
    """
    The ``.litmus`` directory: failure screenshots, coding agent prompts and
    outputs, and per-iteration failure reports.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    @property
    def screenshot_dir(self) -> Path:
        return self.root / "failures"

    def ensure(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def _write_text_atomic(self, path: Path, text: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(path)
        return path

    def write_prompt(self, prompt: str) -> Path:
        return self._write_text_atomic(self.root / "last-prompt.md", prompt)

    def write_agent_output(self, iteration: int, output: str) -> Path:
        return self._write_text_atomic(self.root / f"agent-output-{iteration}.md", output)

    def write_failure_report(self, iteration: int, report: str) -> Path:
        path = self._write_text_atomic(self.root / f"failures-{iteration}.md", report)
        logger.debug(f"Wrote failure report {path}")
        return path
