"""
Run Logger - Markdown log of one submission run

Usage:
    run_logger = RunLogger(url="https://example.com/form", plan=plan)

    run_logger.log_heading("Iteration 1")
    run_logger.log_values({"Name": "Alice", "Rating": "4"})
    run_logger.finalize(state)
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

TOC_PLACEHOLDER = "<!-- TOC_PLACEHOLDER -->"


class RunLogger:
    """
    Markdown run logger (one file per run, with a table of contents).
    """

    def __init__(
        self,
        url: Optional[str] = None,
        plan: Any = None,
        command_line: Optional[str] = None,
        log_dir: str = "./logs",
        session_id: Optional[str] = None,
    ):
        """
        Initialize the run logger.

        Args:
            url: Target document URL
            plan: RunPlan of the run (written as metadata)
            command_line: Full CLI command
            log_dir: Directory for log files
            session_id: Optional session ID (auto-generated if not provided)
        """
        self.session_id = session_id or datetime.now().strftime('%Y%m%d-%H%M%S')
        self.dir = Path(log_dir)
        self.dir.mkdir(parents=True, exist_ok=True)
        self.path = self.dir / f'run-{self.session_id}.md'
        self._toc: List[str] = []

        with open(self.path, 'w', encoding='utf-8') as f:
            f.write(f"# formtasker Run Log ({self.session_id})\n\n")
            f.write("## Navigation\n\n")
            f.write(TOC_PLACEHOLDER + "\n\n")
            if command_line:
                f.write(f"```bash\n{command_line}\n```\n\n")
            if url:
                f.write(f"- **URL**: {url}\n")
            if plan is not None:
                f.write(
                    f"- **Plan**: count={plan.count}, interval={plan.interval_min}-{plan.interval_max}s, "
                    f"jitter={plan.jitter}, stop_on_error={plan.stop_on_error}\n"
                )
            f.write("\n")

    def _write(self, text: str):
        with open(self.path, 'a', encoding='utf-8') as f:
            f.write(text)

    def log_heading(self, text: str):
        self._write("\n---\n\n")
        self._write(f"## {text}\n\n")
        self._toc.append(text)

    def log_text(self, text: str):
        self._write(f"{text}\n\n")

    def log_kv(self, key: str, value: Any):
        self._write(f"- {key}: {value}\n")

    def log_table(self, headers: List[str], rows: List[List[Any]], title: str = ""):
        """
        Log a Markdown table.

        Args:
            headers: List of column headers
            rows: List of rows, each row is a list of cell values
            title: Optional title above the table
        """
        if title:
            self._write(f"### {title}\n\n")
        if not headers or not rows:
            return

        col_widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row[:len(headers)]):
                col_widths[i] = max(col_widths[i], len(str(cell)))

        self._write("| " + " | ".join(h.ljust(col_widths[i]) for i, h in enumerate(headers)) + " |\n")
        self._write("|" + "|".join("-" * (w + 2) for w in col_widths) + "|\n")
        for row in rows:
            padded = list(row) + [""] * (len(headers) - len(row))
            self._write("| " + " | ".join(str(c).ljust(col_widths[i]) for i, c in enumerate(padded[:len(headers)])) + " |\n")
        self._write("\n")

    def log_values(self, values: Dict[str, Any], title: str = "Values"):
        """Table of written values, one row per field label."""
        rows = []
        for label, value in values.items():
            if isinstance(value, dict):
                value = ", ".join(f"{row}={col}" for row, col in value.items())
            display = str(value)
            rows.append([label, display[:40] + ("..." if len(display) > 40 else "")])
        self.log_table(["Field", "Value"], rows, title)

    def log_success(self, message: str):
        self._write(f"✅ **SUCCESS:** {message}\n\n")

    def log_error(self, message: str):
        self._write(f"❌ **ERROR:** {message}\n\n")

    def log_warning(self, message: str):
        self._write(f"⚠️ **WARNING:** {message}\n\n")

    def finalize(self, state: Any):
        """
        Write the run summary and the table of contents.

        Args:
            state: Final RunState
        """
        self.log_heading("Summary")
        self._write(f"**Status:** {state.status.value}\n")
        self._write(f"**Completed:** {state.completed}/{state.planned}\n")
        self._write(f"**Failed:** {state.failed}\n\n")
        if state.errors:
            self.log_table(
                ["Iteration", "Field", "Error"],
                [[e.iteration_index, e.field_id or "", e.message] for e in state.errors],
                "Errors",
            )
        self._update_toc()

    def _slugify(self, text: str) -> str:
        s = text.strip().lower()
        s = re.sub(r"[^a-z0-9\s-]", "", s)
        s = re.sub(r"\s+", "-", s)
        return s

    def _update_toc(self):
        content = self.path.read_text(encoding='utf-8')
        items = [f"- [{title}](#{self._slugify(title)})" for title in self._toc]
        content = content.replace(TOC_PLACEHOLDER, "\n".join(items) or "(no sections)")
        self.path.write_text(content, encoding='utf-8')

    @property
    def log_path(self) -> str:
        return str(self.path)

