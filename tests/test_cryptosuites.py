"""Tests for cryptosuite dispatch."""

from contextlib import nullcontext
from dataclasses import astuple, dataclass, fields

import pytest

from rdf_integrity import Cryptosuite, CryptosuiteError, KeyPair, identify_cryptosuite, resolve_params
from rdf_integrity.cryptosuites import SALT_LENGTH, KeyFamily


@dataclass
class ResolveTestCase:
    jwk: dict
    family: KeyFamily | None = None
    hash: str | None = None
    canonical_hash: str | None = None
    problem_title: str | None = None


RESOLVE_CASES = {
    "P-256": ResolveTestCase(
        jwk={"kty": "EC", "crv": "P-256"},
        family=KeyFamily.EC_P256,
        hash="sha256",
        canonical_hash="sha256",
    ),
    "P-384 uses sha384 everywhere": ResolveTestCase(
        jwk={"kty": "EC", "crv": "P-384"},
        family=KeyFamily.EC_P384,
        hash="sha384",
        canonical_hash="sha384",
    ),
    "Ed25519": ResolveTestCase(
        jwk={"kty": "OKP", "crv": "Ed25519"},
        family=KeyFamily.OKP_ED25519,
        canonical_hash="sha256",
    ),
    "PS512": ResolveTestCase(
        jwk={"kty": "RSA", "alg": "PS512"},
        family=KeyFamily.RSA_PSS,
        hash="sha512",
        canonical_hash="sha256",
    ),
    "RS384": ResolveTestCase(
        jwk={"kty": "RSA", "alg": "RS384"},
        family=KeyFamily.RSA_SSA,
        hash="sha384",
        canonical_hash="sha256",
    ),
    "unknown curve": ResolveTestCase(
        jwk={"kty": "EC", "crv": "P-521"},
        problem_title="Unclassified error",
    ),
    "RSA without alg": ResolveTestCase(
        jwk={"kty": "RSA"},
        problem_title="Unclassified error",
    ),
    "unknown kty": ResolveTestCase(
        jwk={"kty": "oct"},
        problem_title="Unclassified error",
    ),
}


@pytest.mark.parametrize(
    argnames=[field.name for field in fields(ResolveTestCase)],
    argvalues=[astuple(tc) for tc in RESOLVE_CASES.values()],
    ids=list(RESOLVE_CASES.keys()),
)
def test_resolve_params(
    jwk: dict,
    family: KeyFamily | None,
    hash: str | None,
    canonical_hash: str | None,
    problem_title: str | None,
) -> None:
    context = nullcontext() if problem_title is None else pytest.raises(CryptosuiteError)
    with context as caught:
        params = resolve_params(jwk)
        assert params.family is family
        assert params.hash == hash
        assert params.canonical_hash == canonical_hash
    if problem_title is not None:
        assert caught.value.problem.title == problem_title
        assert caught.value.problem.code == -100


class TestResolveParams:
    def test_pss_salt_length(self) -> None:
        """RSA-PSS keys use a 32 byte salt."""
        assert resolve_params({"kty": "RSA", "alg": "PS256"}).salt_length == SALT_LENGTH == 32

    def test_ssa_has_no_salt(self) -> None:
        """RSASSA-PKCS1-v1_5 keys carry no salt length."""
        assert resolve_params({"kty": "RSA", "alg": "RS256"}).salt_length is None


class TestIdentifyCryptosuite:
    @pytest.mark.parametrize(
        ("fixture", "suite"),
        [
            ("p256_key", Cryptosuite.ECDSA),
            ("p384_key", Cryptosuite.ECDSA),
            ("ed25519_key", Cryptosuite.EDDSA),
            ("rsa_pss_key", Cryptosuite.RSA_PSS),
            ("rsa_ssa_key", Cryptosuite.RSA_SSA),
        ],
    )
    def test_generated_keys(self, fixture: str, suite: Cryptosuite, request: pytest.FixtureRequest) -> None:
        """Generated keys map onto their cryptosuite."""
        assert identify_cryptosuite(request.getfixturevalue(fixture)) is suite

    def test_suite_ids(self) -> None:
        """Cryptosuite identifiers match the published names."""
        assert [suite.value for suite in Cryptosuite] == [
            "ecdsa-rdfc-2019",
            "eddsa-rdfc-2022",
            "rsa-pss-rdfc-ih",
            "rsa-ssa-rdfc-ih",
        ]

    def test_mismatched_halves(self, p256_key, p384_key) -> None:
        """Halves of different keys are rejected."""
        pair = KeyPair(public_jwk=p256_key.public_jwk, private_jwk=p384_key.private_jwk)

        with pytest.raises(CryptosuiteError) as caught:
            identify_cryptosuite(pair)

        assert caught.value.problem.code == -24
        assert "crv" in caught.value.problem.detail

    def test_private_without_alg(self, rsa_pss_key) -> None:
        """An RSA private key must declare the same alg as its public half."""
        private = {k: v for k, v in rsa_pss_key.private_jwk.items() if k != "alg"}
        pair = KeyPair(public_jwk=rsa_pss_key.public_jwk, private_jwk=private)

        with pytest.raises(CryptosuiteError, match="alg"):
            identify_cryptosuite(pair)

    def test_declared_suite_mismatch(self, p256_key) -> None:
        """A declared cryptosuite must agree with the key."""
        pair = KeyPair(
            public_jwk=p256_key.public_jwk,
            private_jwk=p256_key.private_jwk,
            cryptosuite="eddsa-rdfc-2022",
        )

        with pytest.raises(CryptosuiteError) as caught:
            identify_cryptosuite(pair)

        assert caught.value.problem.title == "Invalid verification method"

    def test_unknown_algorithm(self) -> None:
        """Unknown algorithms are an invalid verification method."""
        jwk = {"kty": "EC", "crv": "secp256k1", "x": "AA", "y": "AA"}
        pair = KeyPair(public_jwk=jwk, private_jwk={**jwk, "d": "AA"})

        with pytest.raises(CryptosuiteError) as caught:
            identify_cryptosuite(pair)

        assert caught.value.problem.code == -24
