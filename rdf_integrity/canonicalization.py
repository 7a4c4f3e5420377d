"""RDF dataset canonicalization and hashing.

The default implementation runs URDNA2015 (published as RDFC-1.0) from pyld
over an N-Quads rendering of the dataset. Any object with the same two
methods can be plugged in instead.
"""

import hashlib
import logging
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from pyld import jsonld

from rdf_integrity.dataset import Quad, to_nquads
from rdf_integrity.errors import SerializationError

logger = logging.getLogger(__name__)

HASH_ALGORITHMS = ("sha256", "sha384", "sha512")


@runtime_checkable
class Canonicalizer(Protocol):
    def canonicalize(self, dataset: Iterable[Quad]) -> str: ...

    def hash(self, dataset: Iterable[Quad], algorithm: str = "sha256") -> str: ...


def hash_text(text: str, algorithm: str = "sha256") -> str:
    """Hex digest of UTF-8 text."""
    if algorithm not in HASH_ALGORITHMS:
        raise SerializationError(f"unsupported hash algorithm {algorithm!r}")
    return hashlib.new(algorithm, text.encode("utf-8")).hexdigest()


class RDFC10Canonicalizer:
    """URDNA2015 canonicalization via pyld."""

    def canonicalize(self, dataset: Iterable[Quad]) -> str:
        nquads = to_nquads(dataset)
        if not nquads:
            return ""
        try:
            return jsonld.normalize(
                nquads,
                {
                    "algorithm": "URDNA2015",
                    "inputFormat": "application/n-quads",
                    "format": "application/n-quads",
                },
            )
        except jsonld.JsonLdError as exc:
            raise SerializationError(f"RDFC-1.0 canonicalization failed: {exc}") from exc

    def hash(self, dataset: Iterable[Quad], algorithm: str = "sha256") -> str:
        return hash_text(self.canonicalize(dataset), algorithm)


class DatasetDigest:
    """Canonical form of one dataset, hashed on demand per algorithm.

    Keys on different curves need different hash functions over the same
    data; the dataset is canonicalized once and each digest is computed the
    first time it is asked for.
    """

    def __init__(self, canonical_form: str) -> None:
        self._canonical_form = canonical_form
        self._digests: dict[str, str] = {}

    @classmethod
    def of(cls, dataset: Iterable[Quad], canonicalizer: Canonicalizer) -> "DatasetDigest":
        return cls(canonicalizer.canonicalize(dataset))

    def hexdigest(self, algorithm: str = "sha256") -> str:
        if algorithm not in self._digests:
            self._digests[algorithm] = hash_text(self._canonical_form, algorithm)
        return self._digests[algorithm]

    def __repr__(self) -> str:
        return f"DatasetDigest(sha256={self.hexdigest()[:16]}...)"
