"""
Exception hierarchy.

Engine operations (store, relocation, lenient parsing) never raise for bad
input; they degrade to no-ops. Exceptions are reserved for:
- strict descriptor parsing
- catalog loading (network / file / record problems)
"""

from __future__ import annotations


class GridPlannerError(Exception):
    """Base class for all gridplanner errors."""


class DescriptorError(GridPlannerError, ValueError):
    """Raised by strict parsing when a schedule descriptor is malformed."""

    def __init__(self, text: str, problems: list[str]) -> None:
        self.text = text
        self.problems = problems
        super().__init__(f"Malformed schedule descriptor {text!r}: " + "; ".join(problems))


class CatalogFetchError(GridPlannerError):
    """A catalog source could not be fetched or decoded."""

    def __init__(self, source: str, cause: Exception) -> None:
        self.source = source
        self.cause = cause
        super().__init__(f"Failed to fetch catalog source {source!r}: {cause}")


class CatalogRecordError(GridPlannerError, ValueError):
    """A catalog record does not have the shape of a lecture."""
