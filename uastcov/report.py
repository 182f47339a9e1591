"""Markdown rendering of the per-driver UAST usage table."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .models import Driver, SyncOutcome

_NAME_WIDTH = 25
_LANGUAGE_WIDTH = 5


class ReportFormatter:
    """Folds the catalog and the final driver records into the report text.

    Columns follow driver order, rows follow catalog order, so identical
    inputs always produce identical output.
    """

    TEMPLATE_NAME = "report.md.j2"

    def __init__(self, templates_dir: Path | None = None, *, show_status: bool = False) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self.show_status = show_status
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def format(
        self,
        catalog: Sequence[str],
        drivers: Sequence[Driver],
        outcomes: Sequence[SyncOutcome] | None = None,
    ) -> str:
        unmeasured: List[SyncOutcome] = []
        if self.show_status and outcomes:
            unmeasured = [outcome for outcome in outcomes if outcome.failed]
        template = self._env.get_template(self.TEMPLATE_NAME)
        return template.render(table=self.table(catalog, drivers), unmeasured=unmeasured)

    def table(self, catalog: Sequence[str], drivers: Sequence[Driver]) -> List[str]:
        lines = [self._header_row(drivers), self._separator_row(drivers)]
        for name in catalog:
            cells = "".join(
                f" {_count(driver.fixture_usage, name)}/{_count(driver.code_usage, name)} |"
                for driver in drivers
            )
            lines.append(f"|{name:>{_NAME_WIDTH}}|{cells}")
        return lines

    @staticmethod
    def _header_row(drivers: Sequence[Driver]) -> str:
        cells = "".join(f"{driver.language:>{_LANGUAGE_WIDTH}}|" for driver in drivers)
        return f"|{'':>{_NAME_WIDTH}}|{cells}"

    @staticmethod
    def _separator_row(drivers: Sequence[Driver]) -> str:
        return "| :---------------------- |" + " :-- |" * len(drivers)


def _count(usage: Mapping[str, int], name: str) -> int:
    return usage.get(name, 0)


__all__ = ["ReportFormatter"]
