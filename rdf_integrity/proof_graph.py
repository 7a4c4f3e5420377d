"""Proof graphs and their construction.

A proof graph holds two resources: the proof itself (type, purpose,
cryptosuite, creation date, proof value) and the verification method it
points at (the public key, in Multikey or JWK form, with its controller and
lifetime). Everything but the proof value forms the proof option graph,
whose hash is signed together with the hash of the data.
"""

import logging
import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from rdflib import BNode, Literal, URIRef
from rdflib.term import Node

from rdf_integrity import multikey
from rdf_integrity.canonicalization import Canonicalizer, DatasetDigest, RDFC10Canonicalizer
from rdf_integrity.config import DEFAULT_CONFIG, ProofConfig
from rdf_integrity.cryptosuites import AlgorithmParams, KeyFamily, identify_cryptosuite, resolve_params
from rdf_integrity.dataset import GraphId, Quad
from rdf_integrity.errors import CryptosuiteError, InvalidMultikeyError, SerializationError
from rdf_integrity.keys import KeyPair, xsd_datetime
from rdf_integrity.problems import InvalidVerificationMethod, ProofGenerationError, Report
from rdf_integrity.signing import DefaultSignatureProvider, SignatureProvider, canonicalize_jwk, encode_signature
from rdf_integrity.vocab import (
    CONTROLLER,
    CREATED,
    CRYPTOSUITE,
    DATA_INTEGRITY_PROOF,
    EXPIRES,
    JSON_WEB_KEY,
    MULTIKEY,
    PREVIOUS_PROOF,
    PROOF_PURPOSE,
    PROOF_VALUE,
    PUBLIC_KEY_JWK,
    PUBLIC_KEY_MULTIBASE,
    RDF_JSON,
    RDF_TYPE,
    REVOKED,
    VERIFICATION_METHOD,
    XSD_DATETIME,
)

logger = logging.getLogger(__name__)

Triple = tuple[Node, Node, Node]


def new_resource_id() -> URIRef:
    """A fresh opaque resource identifier."""
    return URIRef(f"urn:uuid:{uuid.uuid4()}")


@dataclass(frozen=True)
class ProofGraph:
    """The triples of one proof, with the resource and graph identifiers.

    An empty ProofGraph (no triples, no identifiers) stands for a failed
    generation.
    """

    triples: frozenset[Triple] = frozenset()
    proof_id: URIRef | None = None
    graph_id: GraphId | None = None
    previous_proof: URIRef | None = None

    @classmethod
    def from_triples(cls, triples: Iterable[Triple], graph_id: GraphId | None = None) -> "ProofGraph":
        """Wrap received triples, picking up the proof id and previous proof."""
        triples = frozenset(tuple(triple) for triple in triples)
        proof_id = next(
            (s for s, p, o in sorted(triples) if p == RDF_TYPE and o == DATA_INTEGRITY_PROOF),
            None,
        )
        previous_proof = next(
            (o for s, p, o in sorted(triples) if p == PREVIOUS_PROOF and isinstance(o, URIRef)),
            None,
        )
        return cls(triples=triples, proof_id=proof_id, graph_id=graph_id, previous_proof=previous_proof)

    @property
    def is_empty(self) -> bool:
        return not self.triples

    def quads(self) -> Iterator[Quad]:
        """The triples placed in the proof's named graph."""
        for subject, predicate, obj in self.triples:
            yield Quad(subject, predicate, obj, self.graph_id)

    def __iter__(self) -> Iterator[Triple]:
        return iter(self.triples)

    def __len__(self) -> int:
        return len(self.triples)

    def __bool__(self) -> bool:
        return not self.is_empty


def proof_options_hash(
    triples: Iterable[Triple],
    algorithm: str,
    canonicalizer: Canonicalizer,
) -> str:
    """Hash of a proof option graph.

    Proof value triples are left out, and JWK literals are replaced by their
    canonical JSON form so that member order does not change the hash.

    Raises:
        SerializationError: If a JWK literal is not a JSON object or
            canonicalization fails.
    """
    options = set()
    for subject, predicate, obj in triples:
        if predicate == PROOF_VALUE:
            continue
        if predicate == PUBLIC_KEY_JWK and isinstance(obj, Literal):
            obj = Literal(canonicalize_jwk(str(obj)), datatype=RDF_JSON)
        options.add(Quad(subject, predicate, obj))
    return canonicalizer.hash(frozenset(options), algorithm)


def signing_input(options_hash: str, dataset_hash: str) -> bytes:
    """The bytes that get signed: the two hex digests, options first."""
    return (options_hash + dataset_hash).encode("utf-8")


def key_resource_triples(
    key_id: URIRef,
    key_pair: KeyPair,
    params: AlgorithmParams,
    prefer_jwk: bool = False,
) -> set[Triple]:
    """Verification method triples for a key.

    EC and OKP keys are written as Multikey unless ``prefer_jwk`` is set;
    RSA keys are always written as JWK.

    Raises:
        InvalidMultikeyError: If the public key cannot be Multikey-encoded.
        SerializationError: If the JWK cannot be serialized.
    """
    if prefer_jwk or params.family in (KeyFamily.RSA_PSS, KeyFamily.RSA_SSA):
        triples = {
            (key_id, RDF_TYPE, JSON_WEB_KEY),
            (key_id, PUBLIC_KEY_JWK, Literal(canonicalize_jwk(key_pair.public_jwk), datatype=RDF_JSON)),
        }
    else:
        triples = {
            (key_id, RDF_TYPE, MULTIKEY),
            (key_id, PUBLIC_KEY_MULTIBASE, Literal(multikey.encode_jwk(key_pair.public_jwk))),
        }
    if key_pair.controller is not None:
        triples.add((key_id, CONTROLLER, URIRef(key_pair.controller)))
    if key_pair.expires is not None:
        triples.add((key_id, EXPIRES, Literal(key_pair.expires, datatype=XSD_DATETIME)))
    if key_pair.revoked is not None:
        triples.add((key_id, REVOKED, Literal(key_pair.revoked, datatype=XSD_DATETIME)))
    return triples


class ProofGraphBuilder:
    """Builds signed proof graphs, one key at a time.

    Example:
        >>> builder = ProofGraphBuilder()
        >>> digest = DatasetDigest.of(dataset, builder.canonicalizer)
        >>> report = Report()
        >>> proof = builder.build(digest, key_pair, report)
    """

    def __init__(
        self,
        config: ProofConfig = DEFAULT_CONFIG,
        canonicalizer: Canonicalizer | None = None,
        signer: SignatureProvider | None = None,
    ) -> None:
        self.config = config
        self.canonicalizer = canonicalizer or RDFC10Canonicalizer()
        self.signer = signer or DefaultSignatureProvider()

    def build(
        self,
        digest: DatasetDigest,
        key_pair: KeyPair,
        report: Report,
        *,
        proof_id: URIRef | None = None,
        previous_proof: URIRef | None = None,
    ) -> ProofGraph:
        """Build and sign one proof graph.

        Failures are recorded in ``report`` and yield an empty ProofGraph;
        nothing is raised.

        Args:
            digest: Canonical form of the data being signed.
            key_pair: The signing key.
            report: Collects errors for this key.
            proof_id: Resource id to use for the proof; a fresh one by default.
            previous_proof: Resource id of the preceding proof in a chain.
        """
        try:
            identify_cryptosuite(key_pair)
            params = resolve_params(key_pair.public_jwk)
        except CryptosuiteError as exc:
            report.error(exc.problem)
            return ProofGraph()

        proof_id = proof_id or new_resource_id()
        key_id = new_resource_id()
        logger.debug("Generating %s proof %s", params.cryptosuite.value, proof_id)

        try:
            options = key_resource_triples(key_id, key_pair, params, self.config.prefer_jwk)
        except (InvalidMultikeyError, SerializationError) as exc:
            report.error(InvalidVerificationMethod(str(exc)))
            return ProofGraph()

        options |= {
            (proof_id, RDF_TYPE, DATA_INTEGRITY_PROOF),
            (proof_id, CRYPTOSUITE, Literal(params.cryptosuite.value)),
            (proof_id, VERIFICATION_METHOD, key_id),
            (proof_id, CREATED, Literal(xsd_datetime(self.config.clock()), datatype=XSD_DATETIME)),
        }
        options |= {(proof_id, PROOF_PURPOSE, purpose) for purpose in sorted(self.config.proof_purposes)}
        if previous_proof is not None:
            options.add((proof_id, PREVIOUS_PROOF, previous_proof))

        try:
            options_hash = proof_options_hash(options, params.canonical_hash, self.canonicalizer)
            dataset_hash = digest.hexdigest(params.canonical_hash)
            logger.debug("Signing option hash %s with data hash %s", options_hash, dataset_hash)
            signature = self.signer.sign(params, key_pair.private_jwk, signing_input(options_hash, dataset_hash))
        except Exception as exc:
            logger.warning("Proof generation failed for %r: %s", key_pair, exc)
            report.error(ProofGenerationError(str(exc)))
            return ProofGraph()

        proof_value = encode_signature(signature, self.config.signature_encoding)
        return ProofGraph(
            triples=frozenset(options | {(proof_id, PROOF_VALUE, Literal(proof_value))}),
            proof_id=proof_id,
            graph_id=BNode(),
            previous_proof=previous_proof,
        )
