"""Multi-key proof generation and verification.

Several keys sign one dataset either as a proof set (independent proofs) or
as a proof chain (each proof names its predecessor through
``sec:previousProof``). Keys are processed concurrently; results and
diagnostics come back in the order the keys were given.
"""

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from rdflib import Graph, URIRef
from rdflib.term import Node

from rdf_integrity.canonicalization import Canonicalizer, DatasetDigest, RDFC10Canonicalizer
from rdf_integrity.config import DEFAULT_CONFIG, ProofConfig
from rdf_integrity.dataset import Dataset, Quad, as_dataset
from rdf_integrity.errors import ConfigurationError, SerializationError
from rdf_integrity.keys import KeyPair
from rdf_integrity.partition import order_chain, partition
from rdf_integrity.problems import (
    ProblemDetail,
    ProofGenerationError,
    ProofVerificationError,
    Report,
    UnclassifiedError,
)
from rdf_integrity.proof_graph import ProofGraph, ProofGraphBuilder, Triple, new_resource_id
from rdf_integrity.signing import SignatureProvider
from rdf_integrity.verifier import ProofVerifier
from rdf_integrity.vocab import PROOF

logger = logging.getLogger(__name__)

ProofInput = ProofGraph | Graph | Iterable[Triple]


@dataclass(frozen=True)
class GenerationResult:
    """Proof graphs in key order; failed keys have an empty ProofGraph.

    ``dataset`` is set when the proofs were embedded.
    """

    proof_graphs: tuple[ProofGraph, ...]
    errors: list[ProblemDetail] = field(default_factory=list)
    warnings: list[ProblemDetail] = field(default_factory=list)
    dataset: Dataset | None = None


@dataclass(frozen=True)
class VerificationResult:
    """Verdict and diagnostics.

    ``verified_document`` is the data without its proofs, set only when
    verification succeeded.
    """

    verified: bool
    verified_document: Dataset | None = None
    errors: list[ProblemDetail] = field(default_factory=list)
    warnings: list[ProblemDetail] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.verified


def _as_keys(keys: KeyPair | Sequence[KeyPair]) -> list[KeyPair]:
    if isinstance(keys, KeyPair):
        return [keys]
    keys = list(keys)
    for key in keys:
        if not isinstance(key, KeyPair):
            raise ConfigurationError(f"expected KeyPair instances, got {type(key).__name__}")
    return keys


def _as_proofs(proofs: ProofInput | Sequence[ProofInput]) -> list[ProofGraph]:
    if isinstance(proofs, (ProofGraph, Graph)):
        proofs = [proofs]
    result = []
    for proof in proofs:
        if isinstance(proof, ProofGraph):
            result.append(proof)
        elif isinstance(proof, Graph):
            result.append(ProofGraph.from_triples(proof, proof.identifier))
        else:
            result.append(ProofGraph.from_triples(proof))
    return result


class ProofOrchestrator:
    """Runs the builder and the verifier over several keys or proofs.

    Example:
        >>> orchestrator = ProofOrchestrator()
        >>> result = orchestrator.embed(dataset, [key_1, key_2], anchor=subject, chain=True)
        >>> orchestrator.verify_embedded(result.dataset, anchor=subject).verified
        True
    """

    def __init__(
        self,
        config: ProofConfig = DEFAULT_CONFIG,
        canonicalizer: Canonicalizer | None = None,
        signer: SignatureProvider | None = None,
    ) -> None:
        self.config = config
        self.canonicalizer = canonicalizer or RDFC10Canonicalizer()
        self.builder = ProofGraphBuilder(config, self.canonicalizer, signer)
        self.verifier = ProofVerifier(config, self.canonicalizer, signer)

    def generate(
        self,
        dataset,
        keys: KeyPair | Sequence[KeyPair],
        *,
        chain: bool = False,
        previous: URIRef | None = None,
    ) -> GenerationResult:
        """Sign a dataset with every key.

        In chain mode proof ``i`` names proof ``i - 1`` as its previous
        proof. The resource ids are allocated before signing, so the link is
        covered by each proof's signature and the keys still sign in
        parallel. ``previous`` links the first new proof to an existing one,
        which extends a chain.
        """
        keys = _as_keys(keys)
        data = as_dataset(dataset)
        report = Report()
        try:
            digest = DatasetDigest.of(data, self.canonicalizer)
        except SerializationError as exc:
            report.error(ProofGenerationError(str(exc)))
            return GenerationResult(tuple(ProofGraph() for _ in keys), report.errors, report.warnings)

        proof_ids = [new_resource_id() for _ in keys]
        links: list[URIRef | None] = [previous] + [None] * (len(keys) - 1)
        if chain:
            links[1:] = proof_ids[:-1]

        def task(index: int) -> tuple[ProofGraph, Report]:
            local = Report()
            proof = self.builder.build(
                digest, keys[index], local, proof_id=proof_ids[index], previous_proof=links[index]
            )
            return proof, local

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            outcomes = list(executor.map(task, range(len(keys))))

        for _, local in outcomes:
            report.merge(local)
        proofs = tuple(proof for proof, _ in outcomes)
        logger.debug("Generated %d of %d proofs", sum(1 for p in proofs if p), len(proofs))
        return GenerationResult(proofs, report.errors, report.warnings)

    def verify(
        self, dataset, proofs: ProofInput | Sequence[ProofInput], *, chain: bool = False
    ) -> VerificationResult:
        """Verify detached proof graphs against a dataset.

        All proofs are checked against the same dataset hash; the result is
        true only if every proof verifies (and, for a chain, the links are
        intact).
        """
        data = as_dataset(dataset)
        proof_graphs = _as_proofs(proofs)
        report = Report()
        if chain and proof_graphs:
            order_chain(proof_graphs, report)
        return self._verify_all(data, proof_graphs, report)

    def embed(
        self,
        dataset,
        keys: KeyPair | Sequence[KeyPair],
        *,
        anchor: Node | None = None,
        chain: bool = False,
        previous: URIRef | None = None,
    ) -> GenerationResult:
        """Sign a dataset and add the proof graphs to it.

        Each proof goes into its own named graph. With an anchor, a
        ``sec:proof`` triple links the anchor to every proof graph.
        """
        data = as_dataset(dataset)
        result = self.generate(data, keys, chain=chain, previous=previous)
        combined = set(data)
        for proof in result.proof_graphs:
            if proof.is_empty:
                continue
            combined.update(proof.quads())
            if anchor is not None:
                combined.add(Quad(anchor, PROOF, proof.graph_id))
        return GenerationResult(result.proof_graphs, result.errors, result.warnings, frozenset(combined))

    def verify_embedded(self, dataset, *, anchor: Node | None = None) -> VerificationResult:
        """Verify a dataset that carries its proof graphs.

        A chain is recognized by its ``previousProof`` links and has its
        linkage checked as well.
        """
        report = Report()
        parts = partition(as_dataset(dataset), report, anchor)
        proofs = list(parts.proofs)
        if any(proof.previous_proof is not None for proof in proofs):
            if anchor is None:
                report.warning(UnclassifiedError("Proof chain verified without an anchor"))
            proofs = order_chain(proofs, report)
        return self._verify_all(parts.data, proofs, report)

    def _verify_all(self, data: Dataset, proofs: list[ProofGraph], report: Report) -> VerificationResult:
        if not proofs:
            report.error(ProofVerificationError("No proof graphs found"))
            return VerificationResult(False, None, report.errors, report.warnings)
        try:
            digest = DatasetDigest.of(data, self.canonicalizer)
        except SerializationError as exc:
            report.error(ProofVerificationError(str(exc)))
            return VerificationResult(False, None, report.errors, report.warnings)

        def task(proof: ProofGraph) -> tuple[bool, Report]:
            local = Report()
            return self.verifier.verify(proof, digest, local), local

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            outcomes = list(executor.map(task, proofs))

        for _, local in outcomes:
            report.merge(local)
        verified = all(valid for valid, _ in outcomes) and report.ok
        return VerificationResult(verified, data if verified else None, report.errors, report.warnings)
