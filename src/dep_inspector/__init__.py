"""Dependency Inspector: dependency trees, duplicate versions and vulnerability paths.

Inspects an already-resolved package graph (``cargo metadata`` output) and
renders forward or inverted dependency trees, duplicate-version reports and
the shortest path from the workspace roots to each flagged package.
"""

__version__ = "0.1.0"
