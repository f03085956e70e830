"""Text and JSON output helpers."""

import json
import sys
from typing import Optional

import httpx
from pydantic import BaseModel

from dep_inspector.errors import ErrorCode, InspectorError
from dep_inspector.models import (
    AuditReport,
    DuplicateReport,
    ErrorResponse,
    OutdatedReport,
    TreeStats,
)


def to_json(output: BaseModel) -> str:
    return output.model_dump_json(indent=2)


def render_summary(stats: TreeStats) -> str:
    return (
        f"Crates: {stats.total_crates}  Direct deps: {stats.direct_deps}  "
        f"Transitive deps: {stats.transitive_deps}  Duplicate crates: {stats.duplicate_crates}"
    )


def render_duplicates(report: DuplicateReport) -> str:
    if not report.packages:
        return "No duplicate packages found."
    lines = [f"Duplicate packages: {report.total_duplicates}"]
    for package in report.packages:
        lines.append(f"\n{package.name}")
        for entry in package.versions:
            via = " -> ".join(entry.path) if entry.path else f"({entry.path_status.value})"
            lines.append(f"  v{entry.version}  {via}")
    return "\n".join(lines)


def render_audit(report: AuditReport) -> str:
    s = report.summary
    lines = [
        f"Vulnerabilities: {s.total}  (critical: {s.critical}, high: {s.high}, "
        f"moderate: {s.moderate}, low: {s.low})"
    ]
    for vuln in report.vulnerabilities:
        fix = "fix available" if vuln.fix_available else "no fix"
        lines.append(
            f"\n{vuln.advisory_id} [{vuln.severity.value}] {vuln.package} v{vuln.package_version} ({fix})"
        )
        if vuln.title:
            lines.append(f"  {vuln.title}")
        lines.append(f"  path: {' -> '.join(vuln.path)}")
    return "\n".join(lines)


def _display_name(name: str, alias: Optional[str]) -> str:
    return f"{alias} ({name})" if alias else name


def render_outdated(report: OutdatedReport) -> str:
    lines = [
        f"Total: {report.total}",
        f"Outdated: {report.outdated}",
        f"Major: {report.major}",
        f"Minor: {report.minor}",
        f"Patch: {report.patch}",
        f"Skipped: {report.skipped}",
        f"Workspace: {str(report.workspace).lower()}",
    ]
    if report.workspace:
        lines.append(f"Members: {', '.join(report.members) or 'none'}")
        if report.skipped_members:
            lines.append(f"Skipped members: {', '.join(report.skipped_members)}")

    if not report.packages:
        lines.append("Outdated packages: none")
    else:
        lines.append("Outdated packages:")
        for p in report.packages:
            lines.append(
                f"- {_display_name(p.name, p.alias)} ({p.dependency_type.value}) "
                f"current {p.current} latest {p.latest} required {p.required} [{p.update_type.value}]"
            )

    if report.skipped_packages:
        lines.append("Skipped dependencies:")
        for s in report.skipped_packages:
            lines.append(
                f"- {_display_name(s.name, s.alias)} ({s.reason.value}, type {s.dependency_type.value}, "
                f"required {s.required}, source {s.source or 'unknown'}, target {s.target or 'none'})"
            )
    return "\n".join(lines)


def error_response(error: BaseException) -> ErrorResponse:
    """Snapshot an exception and its ``__cause__`` chain."""
    if isinstance(error, InspectorError):
        code = error.code.value
    elif isinstance(error, httpx.HTTPError):
        code = ErrorCode.http.value
    else:
        code = ErrorCode.internal.value
    causes: list[str] = []
    current = error.__cause__
    while current is not None:
        causes.append(str(current))
        current = current.__cause__
    return ErrorResponse(code=code, message=str(error), causes=causes)


def print_error(error: BaseException, as_json: bool = False) -> None:
    """Write an error to stderr, as JSON or as a plain message."""
    if as_json:
        print(json.dumps(error_response(error).model_dump(), indent=2), file=sys.stderr)
    else:
        print(f"error: {error}", file=sys.stderr)
