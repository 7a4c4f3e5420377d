"""Exception types for rdf-integrity.

Anticipated failures (bad signatures, expired keys, malformed proof
graphs) are never raised to callers; they are collected as ProblemDetail
entries in a Report. The exceptions below cover programmer misuse and the
internal seams whose failures the builder and verifier turn into problems.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rdf_integrity.problems import ProblemDetail


class RDFIntegrityError(Exception):
    """Base exception for rdf-integrity operations."""


class ConfigurationError(RDFIntegrityError):
    """Invalid configuration or a missing collaborator."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Configuration error: {message}")


class KeyFormatError(RDFIntegrityError):
    """A JWK could not be converted into a usable key."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Key error: {message}")


class InvalidMultikeyError(RDFIntegrityError):
    """Multikey string is malformed or uses an unknown key type."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid Multikey: {message}")


class SerializationError(RDFIntegrityError):
    """Serialization or canonicalization failed."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Serialization error: {message}")


class SigningError(RDFIntegrityError):
    """The signature provider could not produce a signature."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Signing failed: {message}")


class CryptosuiteError(RDFIntegrityError):
    """Key attributes do not map onto a supported cryptosuite.

    Carries the problem to be recorded in the report.
    """

    def __init__(self, problem: ProblemDetail) -> None:
        super().__init__(f"{problem.title}: {problem.detail}")
        self.problem = problem
