"""Separation of a signed dataset into its data and its proof graphs.

A named graph is taken to be a proof graph when either the default graph
links to it through ``sec:proof``, or it contains a
``rdf:type sec:DataIntegrityProof`` statement. Everything else, including
all other named graphs, is data.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from rdflib import BNode, URIRef
from rdflib.term import Node

from rdf_integrity.dataset import Dataset, GraphId, Quad
from rdf_integrity.problems import ProofVerificationError, Report
from rdf_integrity.proof_graph import ProofGraph, Triple
from rdf_integrity.vocab import DATA_INTEGRITY_PROOF, PROOF, RDF_TYPE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartitionedDataset:
    """The data quads and the proof graphs found next to them.

    Proof graphs are listed in the order their graph ids were first seen.
    """

    data: Dataset
    proofs: tuple[ProofGraph, ...]

    @property
    def graph_ids(self) -> list[GraphId]:
        return [proof.graph_id for proof in self.proofs]


def _is_graph_name(term: Node) -> bool:
    return isinstance(term, (URIRef, BNode))


def partition(dataset: Iterable[Quad], report: Report, anchor: Node | None = None) -> PartitionedDataset:
    """Split a dataset into data and proof graphs.

    Args:
        dataset: The combined quads.
        report: Receives a problem for every misplaced proof declaration.
        anchor: When given, only ``sec:proof`` links from this subject count.
    """
    quads = list(dataset)

    # Pass 1: collect proof graph ids
    candidates: dict[GraphId, None] = {}
    for quad in quads:
        if quad.graph is None and quad.predicate == PROOF:
            if (anchor is None or quad.subject == anchor) and _is_graph_name(quad.object):
                candidates.setdefault(quad.object)
        elif quad.predicate == RDF_TYPE and quad.object == DATA_INTEGRITY_PROOF:
            if quad.graph is None:
                report.error(
                    ProofVerificationError(
                        f"Proof type declared in the default graph for {quad.subject.n3()}"
                    )
                )
            else:
                candidates.setdefault(quad.graph)

    # Pass 2: route the quads
    data: set[Quad] = set()
    stores: dict[GraphId, set[Triple]] = {graph_id: set() for graph_id in candidates}
    for quad in quads:
        if quad.graph is None:
            if quad.predicate == PROOF and quad.object in candidates:
                continue
            data.add(quad)
        elif quad.graph in stores:
            stores[quad.graph].add(quad.triple)
        else:
            data.add(quad)

    proofs = tuple(ProofGraph.from_triples(triples, graph_id) for graph_id, triples in stores.items())
    logger.debug("Partitioned %d quads into %d data quads and %d proof graphs", len(quads), len(data), len(proofs))
    return PartitionedDataset(data=frozenset(data), proofs=proofs)


def order_chain(proofs: Sequence[ProofGraph], report: Report | None = None) -> list[ProofGraph]:
    """Order proofs along their ``previousProof`` links.

    The chain starts at the one proof without a previous link and follows
    each link to the proof pointing back at it. Broken linkage (no start or
    several starts, forks, dangling or unreached proofs) is recorded in
    ``report``; unreached proofs are appended in their original order so
    that every proof is still returned.
    """
    report = report if report is not None else Report()
    starts = [proof for proof in proofs if proof.previous_proof is None]
    if len(starts) != 1:
        report.error(ProofVerificationError(f"Proof chain must have exactly one start, found {len(starts)}"))
        return list(proofs)

    known = {proof.proof_id for proof in proofs}
    for proof in proofs:
        if proof.previous_proof is not None and proof.previous_proof not in known:
            report.error(
                ProofVerificationError(f"Previous proof {proof.previous_proof} is not part of the chain").for_graph(
                    str(proof.graph_id)
                )
            )

    ordered = [starts[0]]
    while ordered[-1].proof_id is not None:
        successors = [proof for proof in proofs if proof.previous_proof == ordered[-1].proof_id]
        if not successors:
            break
        if len(successors) > 1:
            report.error(
                ProofVerificationError(f"Proof chain forks after {ordered[-1].proof_id}").for_graph(
                    str(ordered[-1].graph_id)
                )
            )
        if successors[0] in ordered:
            break
        ordered.append(successors[0])

    unreached = [proof for proof in proofs if proof not in ordered]
    for proof in unreached:
        if proof.previous_proof in known:
            report.error(ProofVerificationError("Proof is not linked to the chain").for_graph(str(proof.graph_id)))
    return ordered + unreached
