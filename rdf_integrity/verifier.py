"""Verification of a single proof graph.

The checks run in a fixed order and all of them run even after an earlier
one failed, so the report lists every problem with the proof at once. The
verdict is true only if the signature checks out and no error was recorded.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from rdflib import Literal, URIRef
from rdflib.term import Node

from rdf_integrity import multikey
from rdf_integrity.canonicalization import Canonicalizer, DatasetDigest, RDFC10Canonicalizer
from rdf_integrity.config import DEFAULT_CONFIG, ProofConfig
from rdf_integrity.cryptosuites import resolve_params
from rdf_integrity.errors import CryptosuiteError, InvalidMultikeyError, SerializationError
from rdf_integrity.problems import (
    InvalidVerificationMethod,
    ProofTransformationError,
    ProofVerificationError,
    Report,
    UnclassifiedError,
)
from rdf_integrity.proof_graph import ProofGraph, Triple, proof_options_hash, signing_input
from rdf_integrity.signing import DefaultSignatureProvider, SignatureProvider, decode_signature
from rdf_integrity.vocab import (
    CREATED,
    EXPIRES,
    PROOF_PURPOSE,
    PROOF_PURPOSES,
    PROOF_VALUE,
    PUBLIC_KEY_JWK,
    PUBLIC_KEY_MULTIBASE,
    REVOKED,
    VERIFICATION_METHOD,
)

logger = logging.getLogger(__name__)


@dataclass
class _ProofView:
    """Lookup helpers over the triples of one proof graph."""

    triples: frozenset[Triple]

    def objects(self, predicate: URIRef, subject: Node | None = None) -> list[Node]:
        return sorted(
            obj
            for s, p, obj in self.triples
            if p == predicate and (subject is None or s == subject)
        )


def _parse_datetime(value: Node) -> datetime:
    """Parse an xsd:dateTime literal; naive values are taken as UTC.

    Raises:
        ValueError: If the literal is not a date.
    """
    parsed: Any = value.toPython() if isinstance(value, Literal) else None
    if not isinstance(parsed, datetime):
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ProofVerifier:
    """Checks one proof graph against the hash of the data it signs."""

    def __init__(
        self,
        config: ProofConfig = DEFAULT_CONFIG,
        canonicalizer: Canonicalizer | None = None,
        signer: SignatureProvider | None = None,
    ) -> None:
        self.config = config
        self.canonicalizer = canonicalizer or RDFC10Canonicalizer()
        self.signer = signer or DefaultSignatureProvider()

    def verify(self, proof: ProofGraph | Iterable[Triple], digest: DatasetDigest, report: Report) -> bool:
        """Verify one proof graph.

        Args:
            proof: The proof graph, or its bare triples.
            digest: Canonical form of the data the proof should sign.
            report: Receives this proof's diagnostics, tagged with its
                graph id when the proof has one.

        Returns:
            True if the signature is valid and no error was found.
        """
        if not isinstance(proof, ProofGraph):
            proof = ProofGraph(triples=frozenset(proof))
        local = Report()
        verified = self._verify(proof, digest, local)
        report.merge(local.for_graph(str(proof.graph_id) if proof.graph_id is not None else None))
        logger.debug("Proof %s verified: %s", proof.graph_id, verified)
        return verified

    def _verify(self, proof: ProofGraph, digest: DatasetDigest, report: Report) -> bool:
        view = _ProofView(proof.triples)

        self._check_purposes(view, report)
        key_id = self._verification_method(view, report)
        if not self._check_dates(view, key_id, report):
            key_id = None
        public_jwk = self._retrieve_key(view, key_id, report) if key_id is not None else None
        proof_value = self._proof_value(view, report)

        if public_jwk is None or proof_value is None:
            return False
        signature_valid = self._check_signature(proof, public_jwk, proof_value, digest, report)
        return signature_valid and report.ok

    def _check_purposes(self, view: _ProofView, report: Report) -> None:
        purposes = view.objects(PROOF_PURPOSE)
        if not purposes:
            report.error(ProofTransformationError("No proof purpose set"))
        for purpose in purposes:
            if purpose not in PROOF_PURPOSES:
                report.error(
                    ProofTransformationError(
                        f"Mismatch between proof purpose and the expected values: {purpose.n3()}"
                    )
                )

    def _verification_method(self, view: _ProofView, report: Report) -> Node | None:
        methods = view.objects(VERIFICATION_METHOD)
        if not methods:
            report.error(ProofVerificationError("No verification method"))
            return None
        if len(methods) > 1:
            report.error(ProofVerificationError("Multiple verification methods"))
        return methods[0]

    def _check_dates(self, view: _ProofView, key_id: Node | None, report: Report) -> bool:
        """Check creation, expiration and revocation dates.

        Returns False when the key must not be used.
        """
        now = self.config.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        usable = True

        for created in view.objects(CREATED):
            try:
                if _parse_datetime(created) > now:
                    report.warning(ProofVerificationError(f"Proof was created in the future: {created}"))
            except ValueError:
                report.warning(UnclassifiedError(f"Invalid creation date: {created}"))

        if key_id is None:
            return usable
        for predicate, label in ((EXPIRES, "expired"), (REVOKED, "been revoked")):
            for value in view.objects(predicate, key_id):
                try:
                    if _parse_datetime(value) < now:
                        report.error(InvalidVerificationMethod(f"<{key_id}> has {label} on {value}"))
                        usable = False
                except ValueError:
                    report.warning(UnclassifiedError(f"Invalid date for {predicate.n3()}: {value}"))
        return usable

    def _retrieve_key(self, view: _ProofView, key_id: Node, report: Report) -> dict[str, Any] | None:
        """The verification method's public key as a JWK, or None."""
        jwks = view.objects(PUBLIC_KEY_JWK, key_id)
        multikeys = view.objects(PUBLIC_KEY_MULTIBASE, key_id)

        if jwks and multikeys:
            report.warning(InvalidVerificationMethod(f"JWK or Multikey formats are mutually exclusive for <{key_id}>"))
            return None
        if not jwks and not multikeys:
            report.error(InvalidVerificationMethod(f"No key values found for <{key_id}>"))
            return None
        if len(jwks) > 1 or len(multikeys) > 1:
            report.error(InvalidVerificationMethod(f"More than one key value found for <{key_id}>"))
            return None

        try:
            if jwks:
                jwk = json.loads(str(jwks[0]))
                if not isinstance(jwk, dict):
                    raise ValueError("JWK is not a JSON object")
            else:
                jwk = multikey.decode(str(multikeys[0]))
            resolve_params(jwk)
        except (ValueError, InvalidMultikeyError) as exc:
            report.warning(InvalidVerificationMethod(f"Parsing error for the key <{key_id}>: {exc}"))
            return None
        except CryptosuiteError as exc:
            report.warning(InvalidVerificationMethod(f"Unusable key <{key_id}>: {exc.problem.detail}"))
            return None
        return jwk

    def _proof_value(self, view: _ProofView, report: Report) -> str | None:
        values = view.objects(PROOF_VALUE)
        if not values:
            report.error(ProofVerificationError("No proof value"))
            return None
        if len(values) > 1:
            report.warning(ProofVerificationError("Multiple proof values"))
        return str(values[0])

    def _check_signature(
        self,
        proof: ProofGraph,
        public_jwk: dict[str, Any],
        proof_value: str,
        digest: DatasetDigest,
        report: Report,
    ) -> bool:
        params = resolve_params(public_jwk)
        try:
            signature = decode_signature(proof_value)
            options_hash = proof_options_hash(proof.triples, params.canonical_hash, self.canonicalizer)
        except SerializationError as exc:
            report.error(ProofVerificationError(str(exc)))
            return False

        data = signing_input(options_hash, digest.hexdigest(params.canonical_hash))
        try:
            valid = self.signer.verify(params, public_jwk, signature, data)
        except Exception as exc:
            logger.warning("Signature provider failed: %s", exc)
            report.error(ProofVerificationError(f"Signature provider failed: {exc}"))
            return False
        if not valid:
            report.error(ProofVerificationError("Signature is invalid"))
        return valid
