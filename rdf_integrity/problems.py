"""Diagnostics for proof generation and verification.

Problems are plain data, not exceptions: they accumulate in a Report and are
handed back to the caller together with the verdict. The codes and titles
follow the error vocabulary of W3C VC Data Integrity.
"""

from typing import Any, Self

from pydantic import BaseModel, Field, computed_field

SECURITY_VOCABULARY = "https://w3id.org/security#"


class ProblemDetail(BaseModel):
    """A single diagnostic entry.

    Attributes:
        code: Numeric error code.
        title: Short name of the problem class.
        detail: Human readable description of this occurrence.
    """

    code: int = -100
    title: str = "Unclassified error"
    detail: str

    def __init__(self, detail: str, **data: Any) -> None:
        super().__init__(detail=detail, **data)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def type(self) -> str:
        """Vocabulary URL of the problem class."""
        return SECURITY_VOCABULARY + self.title.upper().replace(" ", "_")

    def for_graph(self, graph_id: str) -> Self:
        """Copy of this problem, tagged with a proof graph identifier."""
        return self.model_copy(update={"detail": f"{self.detail} (graph ID: <{graph_id}>)"})

    def __str__(self) -> str:
        return f"{self.title} ({self.code}): {self.detail}"


class ProofGenerationError(ProblemDetail):
    code: int = -16
    title: str = "Proof generation error"


class ProofVerificationError(ProblemDetail):
    code: int = -17
    title: str = "Proof verification error"


class ProofTransformationError(ProblemDetail):
    code: int = -18
    title: str = "Proof transformation error"


class InvalidVerificationMethod(ProblemDetail):
    code: int = -24
    title: str = "Invalid verification method"


class UnclassifiedError(ProblemDetail):
    code: int = -100
    title: str = "Unclassified error"


class Report(BaseModel):
    """Append-only collection of errors and warnings."""

    errors: list[ProblemDetail] = Field(default_factory=list)
    warnings: list[ProblemDetail] = Field(default_factory=list)

    def error(self, problem: ProblemDetail) -> None:
        self.errors.append(problem)

    def warning(self, problem: ProblemDetail) -> None:
        self.warnings.append(problem)

    def merge(self, other: "Report") -> None:
        """Append the entries of another report, keeping their order."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def for_graph(self, graph_id: str | None) -> "Report":
        """Copy of this report with every entry tagged with the graph id."""
        if graph_id is None:
            return self.model_copy(deep=True)
        return Report(
            errors=[problem.for_graph(graph_id) for problem in self.errors],
            warnings=[problem.for_graph(graph_id) for problem in self.warnings],
        )

    @property
    def ok(self) -> bool:
        """True when no errors have been recorded."""
        return not self.errors
