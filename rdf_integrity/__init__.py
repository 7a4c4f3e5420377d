"""RDF Data Integrity proofs.

Signs RDF datasets with ECDSA, EdDSA and RSA keys and verifies the proofs,
as proof sets or proof chains, detached or embedded in the dataset.

Example:
    >>> from rdflib import Graph
    >>> from rdf_integrity import generate_key, generate_proof_graph, verify_proof_graph
    >>> key = generate_key("ecdsa-rdfc-2019")
    >>> graph = Graph().parse(data='<http://example.org/a> <http://example.org/b> "c" .', format="nt")
    >>> result = generate_proof_graph(graph, key)
    >>> verify_proof_graph(graph, result.proof_graphs).verified
    True
"""

from collections.abc import Sequence

from rdflib import URIRef
from rdflib.term import Node

from rdf_integrity.canonicalization import Canonicalizer, DatasetDigest, RDFC10Canonicalizer
from rdf_integrity.config import ProofConfig
from rdf_integrity.cryptosuites import AlgorithmParams, Cryptosuite, identify_cryptosuite, resolve_params
from rdf_integrity.dataset import Dataset, Quad, as_dataset, to_rdflib
from rdf_integrity.errors import (
    ConfigurationError,
    CryptosuiteError,
    InvalidMultikeyError,
    KeyFormatError,
    RDFIntegrityError,
    SerializationError,
    SigningError,
)
from rdf_integrity.keys import KeyPair, generate_key
from rdf_integrity.orchestrator import GenerationResult, ProofInput, ProofOrchestrator, VerificationResult
from rdf_integrity.partition import PartitionedDataset, order_chain, partition
from rdf_integrity.problems import (
    InvalidVerificationMethod,
    ProblemDetail,
    ProofGenerationError,
    ProofTransformationError,
    ProofVerificationError,
    Report,
    UnclassifiedError,
)
from rdf_integrity.proof_graph import ProofGraph, ProofGraphBuilder
from rdf_integrity.signing import DefaultSignatureProvider, SignatureProvider
from rdf_integrity.verifier import ProofVerifier

__version__ = "0.1.0"


def generate_proof_graph(
    dataset,
    keys: KeyPair | Sequence[KeyPair],
    *,
    chain: bool = False,
    previous: URIRef | None = None,
    config: ProofConfig | None = None,
) -> GenerationResult:
    """Create detached proof graphs for a dataset, one per key."""
    return ProofOrchestrator(config or ProofConfig()).generate(dataset, keys, chain=chain, previous=previous)


def verify_proof_graph(
    dataset,
    proofs: ProofInput | Sequence[ProofInput],
    *,
    chain: bool = False,
    config: ProofConfig | None = None,
) -> VerificationResult:
    """Verify detached proof graphs against a dataset."""
    return ProofOrchestrator(config or ProofConfig()).verify(dataset, proofs, chain=chain)


def embed_proof_graph(
    dataset,
    keys: KeyPair | Sequence[KeyPair],
    *,
    anchor: Node | None = None,
    chain: bool = False,
    previous: URIRef | None = None,
    config: ProofConfig | None = None,
) -> GenerationResult:
    """Sign a dataset and return it with the proof graphs embedded."""
    return ProofOrchestrator(config or ProofConfig()).embed(
        dataset, keys, anchor=anchor, chain=chain, previous=previous
    )


def verify_embedded_proof_graph(
    dataset,
    *,
    anchor: Node | None = None,
    config: ProofConfig | None = None,
) -> VerificationResult:
    """Verify a dataset carrying its own proof graphs."""
    return ProofOrchestrator(config or ProofConfig()).verify_embedded(dataset, anchor=anchor)


__all__ = [
    # Core
    "generate_proof_graph",
    "verify_proof_graph",
    "embed_proof_graph",
    "verify_embedded_proof_graph",
    "generate_key",
    "KeyPair",
    "ProofConfig",
    # Components
    "ProofOrchestrator",
    "ProofGraphBuilder",
    "ProofVerifier",
    "ProofGraph",
    "GenerationResult",
    "VerificationResult",
    "PartitionedDataset",
    "partition",
    "order_chain",
    "Cryptosuite",
    "AlgorithmParams",
    "resolve_params",
    "identify_cryptosuite",
    # Collaborators
    "Canonicalizer",
    "RDFC10Canonicalizer",
    "DatasetDigest",
    "SignatureProvider",
    "DefaultSignatureProvider",
    # Datasets
    "Dataset",
    "Quad",
    "as_dataset",
    "to_rdflib",
    # Diagnostics
    "Report",
    "ProblemDetail",
    "ProofGenerationError",
    "ProofVerificationError",
    "ProofTransformationError",
    "InvalidVerificationMethod",
    "UnclassifiedError",
    # Errors
    "RDFIntegrityError",
    "ConfigurationError",
    "CryptosuiteError",
    "InvalidMultikeyError",
    "KeyFormatError",
    "SerializationError",
    "SigningError",
]
