"""Tests for dataset conversion and canonicalization."""

import pytest
from rdflib import BNode, Dataset as RDFLibDataset, Graph, Literal, URIRef

from rdf_integrity import DatasetDigest, Quad, RDFC10Canonicalizer, SerializationError, as_dataset, to_rdflib
from rdf_integrity.canonicalization import Canonicalizer, hash_text
from rdf_integrity.dataset import to_nquads

EX = "http://example.org/"
A, B, C = URIRef(EX + "a"), URIRef(EX + "b"), URIRef(EX + "c")


class TestAsDataset:
    def test_plain_graph(self) -> None:
        """A plain Graph becomes default graph quads."""
        graph = Graph()
        graph.add((A, B, Literal("c")))

        assert as_dataset(graph) == frozenset({Quad(A, B, Literal("c"))})

    def test_named_graphs_kept(self) -> None:
        """Named graphs of an rdflib Dataset survive the conversion."""
        source = RDFLibDataset()
        source.add((A, B, C))
        source.graph(URIRef(EX + "g")).add((A, B, Literal("c")))

        dataset = as_dataset(source)

        assert Quad(A, B, C) in dataset
        assert Quad(A, B, Literal("c"), URIRef(EX + "g")) in dataset

    def test_triples_and_quads(self) -> None:
        """Iterables may mix triples and quads."""
        dataset = as_dataset([(A, B, C), (A, B, C, URIRef(EX + "g"))])

        assert len(dataset) == 2

    def test_bad_statement(self) -> None:
        with pytest.raises(SerializationError, match="triple or a quad"):
            as_dataset([(A, B)])

    def test_to_rdflib_roundtrip(self) -> None:
        """Converting to rdflib and back gives the same quads."""
        dataset = as_dataset([(A, B, C), (A, B, Literal("x"), BNode())])

        assert as_dataset(to_rdflib(dataset)) == dataset


class TestCanonicalization:
    def test_nquads_escaping(self) -> None:
        """Literals are written in N-Quads syntax."""
        text = to_nquads([Quad(A, B, Literal('say "hi"'))])

        assert text == f'<{EX}a> <{EX}b> "say \\"hi\\"" .\n'

    @pytest.mark.parametrize(
        ("value", "written"),
        [
            ("line one\nline two", r'"line one\nline two"'),
            ('back\\slash "quoted"', r'"back\\slash \"quoted\""'),
        ],
    )
    def test_nquads_control_characters(self, value: str, written: str) -> None:
        """Newlines and backslashes are escaped, never written as long strings."""
        text = to_nquads([Quad(A, B, Literal(value))])

        assert text == f"<{EX}a> <{EX}b> {written} .\n"
        assert RDFC10Canonicalizer().canonicalize(as_dataset([(A, B, Literal(value))])) == text

    def test_blank_node_labels_irrelevant(self) -> None:
        """Isomorphic datasets have the same canonical form."""
        canonicalizer = RDFC10Canonicalizer()
        first = as_dataset([(BNode("x1"), B, C)])
        second = as_dataset([(BNode("other"), B, C)])

        assert canonicalizer.canonicalize(first) == canonicalizer.canonicalize(second)
        assert canonicalizer.canonicalize(first) == f"_:c14n0 <{EX}b> <{EX}c> .\n"

    def test_empty_dataset(self) -> None:
        assert RDFC10Canonicalizer().canonicalize(frozenset()) == ""

    def test_protocol(self) -> None:
        assert isinstance(RDFC10Canonicalizer(), Canonicalizer)

    def test_hash_algorithms(self) -> None:
        """Hex digests have the length of the algorithm."""
        assert len(hash_text("abc", "sha256")) == 64
        assert len(hash_text("abc", "sha384")) == 96
        with pytest.raises(SerializationError, match="unsupported hash"):
            hash_text("abc", "md5")


class TestDatasetDigest:
    def test_matches_canonicalizer(self) -> None:
        """Digests equal the canonicalizer's own hashes."""
        canonicalizer = RDFC10Canonicalizer()
        dataset = as_dataset([(A, B, Literal("c"))])

        digest = DatasetDigest.of(dataset, canonicalizer)

        assert digest.hexdigest("sha256") == canonicalizer.hash(dataset, "sha256")
        assert digest.hexdigest("sha384") == canonicalizer.hash(dataset, "sha384")
