"""Exception hierarchy for dep-inspector.

Every error raised by the engine or its collaborators inherits from
``InspectorError`` so the CLI and the TUI can report them uniformly.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable machine-readable error category."""

    metadata = "metadata"
    invalid_data = "invalid_data"
    not_found = "not_found"
    traversal_limit = "traversal_limit"
    config = "config"
    http = "http"
    registry = "registry"
    internal = "internal"


class InspectorError(Exception):
    """Base exception for all dep-inspector errors."""

    code = ErrorCode.internal

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MetadataError(InspectorError):
    """The resolved metadata could not be read or validated."""

    code = ErrorCode.metadata


class GraphConsistencyError(InspectorError):
    """The resolved graph references a package it does not define."""

    code = ErrorCode.invalid_data


class PackageNotFoundError(InspectorError):
    """A package named by the caller does not exist in the graph."""

    code = ErrorCode.not_found

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"no package named '{name}' found in metadata")


class EmptyWorkspaceError(InspectorError):
    """A virtual workspace without members has nothing to display."""

    code = ErrorCode.invalid_data

    def __init__(self) -> None:
        super().__init__("no root package and no workspace members found")


class TraversalLimitError(InspectorError):
    """Tree traversal went deeper than the hard ceiling."""

    code = ErrorCode.traversal_limit

    def __init__(self, package: str, ceiling: int):
        self.package = package
        self.ceiling = ceiling
        super().__init__(
            f"traversal exceeded the depth ceiling of {ceiling} at package '{package}'"
        )


class NoRootPackageError(InspectorError):
    """The check needs a single root package, but the workspace is virtual."""

    code = ErrorCode.invalid_data

    def __init__(self) -> None:
        super().__init__("no root package found (virtual workspaces are not supported here)")


class RegistryError(InspectorError):
    """The package registry returned data that cannot be used."""

    code = ErrorCode.registry
