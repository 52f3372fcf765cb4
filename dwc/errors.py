from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class MappingIssue(Exception):
    """Row-level problem found while mapping the checklist.

    Parameters
    ----------
    row_index:
        Zero-based position of the offending row in the input table.
    message:
        Human readable description.
    """

    row_index: int
    message: str

    code = "issue"

    def __post_init__(self) -> None:
        # args mirror the positional fields so the issue pickles and copies
        super().__init__(self.row_index, self.message)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.code} (row {self.row_index}): {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        data = {"code": self.code, "row_index": self.row_index, "message": self.message}
        for key, value in self.__dict__.items():
            if key not in data and not key.startswith("_"):
                data[key] = list(value) if isinstance(value, tuple) else value
        return data


@dataclass
class MissingFieldError(MappingIssue):
    """An identifying field is absent; the row is dropped from every table."""

    field: str = "taxon_id_hash"

    code = "missing_field"


@dataclass
class IncompleteTaxonError(MappingIssue):
    """A taxon lacks required taxon-level fields; it is left out of the taxon table."""

    taxon_id: str = ""
    fields: Tuple[str, ...] = ()

    code = "incomplete_taxon"


@dataclass
class UnmappedLocationWarning(MappingIssue, UserWarning):
    """A location has no entry in the lookup table; location fields stay empty."""

    taxon_id: str = ""
    location: Optional[str] = None

    code = "unmapped_location"


@dataclass
class MappingReport:
    """Errors and warnings accumulated during one mapping run."""

    errors: List[MappingIssue] = field(default_factory=list)
    warnings: List[MappingIssue] = field(default_factory=list)
    missing_columns: List[str] = field(default_factory=list)

    def add(self, issue: MappingIssue) -> None:
        if isinstance(issue, UserWarning):
            self.warnings.append(issue)
        else:
            self.errors.append(issue)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON serialisable summary of the run's data-quality issues."""

        return {
            "error_count": len(self.errors),
            "warning_count": len(self.warnings),
            "missing_columns": list(self.missing_columns),
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
        }


class MappingError(Exception):
    """Raised in strict mode when the mapping produced row-level errors."""

    def __init__(self, report: MappingReport):
        self.report = report
        super().__init__(
            f"mapping produced {len(report.errors)} error(s); first: {report.errors[0]}"
            if report.errors
            else "mapping failed"
        )


class ChecklistReadError(Exception):
    """Raised when the source checklist cannot be retrieved."""


__all__ = [
    "MappingIssue",
    "MissingFieldError",
    "IncompleteTaxonError",
    "UnmappedLocationWarning",
    "MappingReport",
    "MappingError",
    "ChecklistReadError",
]
