"""Audit attribution: map advisories onto paths through the dependency graph."""

import logging
from typing import Optional

from dep_inspector.analysis.graph import ResolvedGraph
from dep_inspector.analysis.paths import PathFinder
from dep_inspector.models import (
    Advisory,
    AuditReport,
    AuditSummary,
    Severity,
    Vulnerability,
)

logger = logging.getLogger(__name__)

_SEVERITY_ALIASES = {
    "critical": Severity.critical,
    "high": Severity.high,
    "medium": Severity.moderate,
    "moderate": Severity.moderate,
    "low": Severity.low,
    "none": Severity.low,
}


def map_severity(raw: Optional[str]) -> Severity:
    """Normalize a database severity label; unknown severity counts as high."""
    if not raw:
        return Severity.high
    return _SEVERITY_ALIASES.get(raw.strip().lower(), Severity.high)


def attribute_advisories(
    graph: ResolvedGraph,
    advisories: list[Advisory],
    finder: Optional[PathFinder] = None,
) -> AuditReport:
    """Attach the shortest root-to-package path to every advisory."""
    finder = finder or PathFinder(graph)
    vulnerabilities: list[Vulnerability] = []

    for advisory in advisories:
        result = finder.path_to(advisory.package, advisory.version, advisory.source)
        if not result.found:
            logger.warning(
                "%s: no dependency path to %s %s (%s)",
                advisory.advisory_id, advisory.package, advisory.version, result.status.value,
            )
        vulnerabilities.append(
            Vulnerability(
                package=advisory.package,
                package_version=advisory.version,
                advisory_id=advisory.advisory_id,
                severity=map_severity(advisory.severity),
                title=advisory.title,
                path=result.path if result.found else [advisory.package],
                path_status=result.status,
                fix_available=advisory.fix_available,
            )
        )

    return AuditReport(vulnerabilities=vulnerabilities, summary=summarize(vulnerabilities))


def summarize(vulnerabilities: list[Vulnerability]) -> AuditSummary:
    summary = AuditSummary(total=len(vulnerabilities))
    for vuln in vulnerabilities:
        if vuln.severity is Severity.critical:
            summary.critical += 1
        elif vuln.severity is Severity.high:
            summary.high += 1
        elif vuln.severity is Severity.moderate:
            summary.moderate += 1
        else:
            summary.low += 1
    return summary
