"""Shared fixtures."""

import pytest
from rdflib import Literal, URIRef

from rdf_integrity import Quad, as_dataset, generate_key

EX = "http://example.org/"


@pytest.fixture(scope="session")
def p256_key():
    return generate_key("ecdsa-rdfc-2019", curve="P-256")


@pytest.fixture(scope="session")
def p384_key():
    return generate_key("ecdsa-rdfc-2019", curve="P-384")


@pytest.fixture(scope="session")
def ed25519_key():
    return generate_key("eddsa-rdfc-2022")


@pytest.fixture(scope="session")
def rsa_pss_key():
    return generate_key("rsa-pss-rdfc-ih", hash="SHA-256")


@pytest.fixture(scope="session")
def rsa_ssa_key():
    return generate_key("rsa-ssa-rdfc-ih", hash="SHA-384")


@pytest.fixture
def dataset():
    """The single statement <ex:a> <ex:b> "c"."""
    return as_dataset([Quad(URIRef(EX + "a"), URIRef(EX + "b"), Literal("c"))])
