"""Datasets as immutable sets of quads over rdflib terms.

Parsing and serialization stay with rdflib; this module only converts
between rdflib graphs and the frozen quad sets the proof machinery works on.
"""

from collections.abc import Iterable
from typing import NamedTuple, Union

from rdflib import BNode, Dataset as RDFLibDataset, Graph, Literal, URIRef
from rdflib.graph import DATASET_DEFAULT_GRAPH_ID
from rdflib.plugins.serializers.nt import _quoteLiteral
from rdflib.term import Node

from rdf_integrity.errors import SerializationError

GraphId = Union[URIRef, BNode]


class Quad(NamedTuple):
    """An RDF statement; ``graph`` is None for the default graph."""

    subject: Node
    predicate: Node
    object: Node
    graph: GraphId | None = None

    @property
    def triple(self) -> tuple[Node, Node, Node]:
        return (self.subject, self.predicate, self.object)


Dataset = frozenset[Quad]


def _graph_id(context: object) -> GraphId | None:
    if context is None:
        return None
    if isinstance(context, Graph):
        context = context.identifier
    if context == DATASET_DEFAULT_GRAPH_ID:
        return None
    if not isinstance(context, (URIRef, BNode)):
        raise SerializationError(f"unsupported graph name {context!r}")
    return context


def as_dataset(source: Iterable) -> Dataset:
    """Snapshot a graph, dataset or iterable of triples/quads.

    rdflib Datasets and ConjunctiveGraphs keep their named graphs; a plain
    Graph is taken as the default graph.
    """
    if isinstance(source, frozenset) and all(isinstance(q, Quad) for q in source):
        return source

    if isinstance(source, Graph) and hasattr(source, "quads") and source.context_aware:
        statements = source.quads((None, None, None, None))
    elif isinstance(source, Graph):
        statements = ((s, p, o, None) for s, p, o in source)
    else:
        statements = source

    quads = set()
    for statement in statements:
        if len(statement) == 3:
            subject, predicate, obj = statement
            graph = None
        elif len(statement) == 4:
            subject, predicate, obj, graph = statement
        else:
            raise SerializationError(f"expected a triple or a quad, got {statement!r}")
        quads.add(Quad(subject, predicate, obj, _graph_id(graph)))
    return frozenset(quads)


def to_rdflib(dataset: Iterable[Quad]) -> RDFLibDataset:
    """Copy quads into a fresh rdflib Dataset, e.g. for serialization."""
    output = RDFLibDataset()
    for quad in dataset:
        if quad.graph is None:
            output.add(quad.triple)
        else:
            output.graph(quad.graph).add(quad.triple)
    return output


def _term_to_nquads(term: Node, bnode_labels: dict[BNode, str]) -> str:
    if isinstance(term, BNode):
        if term not in bnode_labels:
            bnode_labels[term] = f"_:b{len(bnode_labels)}"
        return bnode_labels[term]
    if isinstance(term, URIRef):
        return term.n3()
    if isinstance(term, Literal):
        return _quoteLiteral(term)
    raise SerializationError(f"cannot serialize term {term!r}")


def to_nquads(dataset: Iterable[Quad]) -> str:
    """Serialize quads as N-Quads.

    Blank nodes are relabelled ``_:b0``, ``_:b1``... so that any label rdflib
    produced is acceptable to the canonicalizer; the relabelling is
    irrelevant after canonicalization.
    """
    bnode_labels: dict[BNode, str] = {}
    lines = []
    for quad in dataset:
        terms = [_term_to_nquads(term, bnode_labels) for term in quad.triple]
        if quad.graph is not None:
            terms.append(_term_to_nquads(quad.graph, bnode_labels))
        lines.append(" ".join(terms) + " .\n")
    return "".join(lines)
