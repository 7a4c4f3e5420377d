"""Configuration for proof generation and verification."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any

from rdflib import URIRef

from rdf_integrity.errors import ConfigurationError
from rdf_integrity.signing import SIGNATURE_ENCODINGS
from rdf_integrity.vocab import ASSERTION_METHOD, AUTHENTICATION_METHOD, PROOF_PURPOSES, SEC


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProofConfig:
    """Settings shared by the builder, the verifier and the orchestrator.

    Attributes:
        signature_encoding: Multibase encoding of proof values
            (``base58btc`` or ``base64url``).
        proof_purposes: Purposes written into new proof graphs.
        prefer_jwk: Write JWK key resources for EC and OKP keys too.
        max_workers: Thread pool size for multi-key operations; None lets
            the executor decide.
        clock: Returns the current time, timezone-aware.
    """

    signature_encoding: str = "base58btc"
    proof_purposes: frozenset[URIRef] = field(
        default_factory=lambda: frozenset({AUTHENTICATION_METHOD, ASSERTION_METHOD})
    )
    prefer_jwk: bool = False
    max_workers: int | None = None
    clock: Callable[[], datetime] = utc_now

    def __post_init__(self) -> None:
        if self.signature_encoding not in SIGNATURE_ENCODINGS:
            raise ConfigurationError(
                f"signature_encoding must be one of {sorted(SIGNATURE_ENCODINGS)}, "
                f"got {self.signature_encoding!r}"
            )
        purposes = frozenset(_purpose(value) for value in self.proof_purposes)
        if not purposes:
            raise ConfigurationError("at least one proof purpose is required")
        object.__setattr__(self, "proof_purposes", purposes)
        if self.max_workers is not None and (
            not isinstance(self.max_workers, int) or self.max_workers < 1
        ):
            raise ConfigurationError(f"max_workers must be a positive integer, got {self.max_workers!r}")
        if not callable(self.clock):
            raise ConfigurationError("clock must be callable")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProofConfig":
        """Load settings from a mapping, e.g. parsed JSON or TOML.

        Proof purposes may be given by local name (``assertionMethod``) or as
        full IRIs.

        Raises:
            ConfigurationError: For unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)} - {"clock"}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"unknown settings: {', '.join(sorted(unknown))}")
        values = dict(data)
        if "proof_purposes" in values:
            purposes = values["proof_purposes"]
            if isinstance(purposes, str):
                purposes = [purposes]
            values["proof_purposes"] = frozenset(purposes)
        if "prefer_jwk" in values and not isinstance(values["prefer_jwk"], bool):
            raise ConfigurationError("prefer_jwk must be a boolean")
        return cls(**values)


def _purpose(value: str) -> URIRef:
    iri = URIRef(value) if ":" in str(value) else SEC[value]
    if iri not in PROOF_PURPOSES:
        raise ConfigurationError(f"unsupported proof purpose {value!r}")
    return iri


DEFAULT_CONFIG = ProofConfig()
