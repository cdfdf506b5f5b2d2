"""
Report Builder - Render a RunReport as text and HTML.

Uses Jinja2 templates. Rendering is a pure function of the RunReport:
every timestamp shown comes from the report itself.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from repl_auditor.logger import logger
from repl_auditor.schemas.fixture import DIRECTORY_KINDS, FixtureKind
from repl_auditor.schemas.run_report import CheckResult, RunReport

NOT_APPLICABLE = "N/A"

# Kinds shown in the per-node replication matrix
MATRIX_KINDS = DIRECTORY_KINDS + (FixtureKind.DNS_RECORD,)


@dataclass
class Row:
    """One rendered line of a report section."""
    label: str
    name: str
    status: str
    note: str = ""


@dataclass
class RenderedReport:
    """Rendered document plus its machine-readable payload."""
    subject: str
    text: str
    html: str
    payload: dict = field(default_factory=dict)


def cell_status(report: RunReport, kind: FixtureKind, result: Optional[CheckResult]) -> str:
    """PASS, FAIL or N/A for one check."""
    if kind in report.not_applicable or kind not in report.kinds_in_scope:
        return NOT_APPLICABLE
    if result is None or not result.passed:
        return "FAIL"
    return "PASS"


class ReportBuilder:
    """Render replication reports from templates."""

    def __init__(self, template_dir: str = None):
        self.template_dir = template_dir or os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")
        self.env = Environment(
            loader=FileSystemLoader(self.template_dir),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render(self, report: RunReport) -> RenderedReport:
        """Render the report.

        Args:
            report: Completed run report

        Returns:
            RenderedReport with subject, plain text and HTML bodies
        """
        context = {
            "report": report,
            "subject": self.subject(report),
            "started": report.started_at.strftime("%Y-%m-%d %H:%M:%S"),
            "completed": report.completed_at.strftime("%Y-%m-%d %H:%M:%S") if report.completed_at else "",
            "ad_rows": [self._local_row(report, kind) for kind in DIRECTORY_KINDS],
            "system_rows": [self._local_row(report, FixtureKind.HOST_FEATURE)],
            "dns_rows": [self._local_row(report, FixtureKind.DNS_RECORD)],
            "matrix_kinds": MATRIX_KINDS,
            "matrix": self._matrix(report),
            "na": NOT_APPLICABLE,
        }

        text = self.env.get_template("replication_report.txt").render(**context)
        html = self.env.get_template("replication_report.html").render(**context)

        logger.debug(f"Rendered report for {report.domain} ({len(html)} bytes HTML)")
        return RenderedReport(
            subject=context["subject"],
            text=text,
            html=html,
            payload=report.model_dump(mode="json"),
        )

    def subject(self, report: RunReport) -> str:
        total = len(report.all_results)
        return (
            f"Replication check {report.domain} from {report.local_node}: "
            f"{report.passed_count}/{total} checks passed"
        )

    def _local_row(self, report: RunReport, kind: FixtureKind) -> Row:
        result = report.result("local", report.local_node, kind)
        status = cell_status(report, kind, result)
        if status == NOT_APPLICABLE:
            note = report.not_applicable.get(kind, "not applicable")
            return Row(label=kind.label, name="", status=status, note=note)

        notes = []
        if kind in report.creation_errors:
            notes.append(f"create failed: {report.creation_errors[kind]}")
        if result is not None and result.error:
            notes.append(f"probe error: {result.error}")
        name = result.fixture_name if result else ""
        return Row(label=kind.label, name=name, status=status, note="; ".join(notes))

    def _matrix(self, report: RunReport) -> list[dict]:
        """One row per node, one cell per matrix kind."""
        rows = []
        for node in report.nodes:
            cells = []
            errors = []
            for kind in MATRIX_KINDS:
                result = report.cell(node, kind)
                status = cell_status(report, kind, result)
                if status == "FAIL" and result is not None and result.error:
                    errors.append(f"{kind.label}: {result.error}")
                cells.append(status)
            rows.append({
                "node": node,
                "local": node.lower() == report.local_node.lower(),
                "cells": cells,
                "errors": errors,
            })
        return rows
