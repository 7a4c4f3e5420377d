"""Tests for key pairs and JWK conversion."""

from datetime import datetime, timezone

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from nacl.signing import SigningKey, VerifyKey

from rdf_integrity import KeyFormatError, KeyPair, generate_key
from rdf_integrity.keys import (
    jwk_from_private_key,
    jwk_from_public_key,
    private_key_from_jwk,
    public_key_from_jwk,
)


class TestGenerateKey:
    def test_ecdsa_p384(self) -> None:
        """ECDSA keys carry the requested curve."""
        key = generate_key("ecdsa-rdfc-2019", curve="P-384")

        assert key.public_jwk["kty"] == "EC"
        assert key.public_jwk["crv"] == "P-384"
        assert "d" not in key.public_jwk
        assert "d" in key.private_jwk

    def test_rsa_alg(self, rsa_pss_key, rsa_ssa_key) -> None:
        """RSA keys record their alg in both halves."""
        assert rsa_pss_key.public_jwk["alg"] == "PS256"
        assert rsa_pss_key.private_jwk["alg"] == "PS256"
        assert rsa_ssa_key.public_jwk["alg"] == "RS384"

    def test_metadata(self) -> None:
        """Dates are stored as xsd:dateTime text in UTC."""
        key = generate_key(
            "eddsa-rdfc-2022",
            controller="https://example.org/alice",
            expires=datetime(2030, 1, 1, tzinfo=timezone.utc),
            revoked="2031-01-01T00:00:00Z",
        )

        assert key.controller == "https://example.org/alice"
        assert key.expires == "2030-01-01T00:00:00Z"
        assert key.revoked == "2031-01-01T00:00:00Z"

    def test_unknown_suite(self) -> None:
        """Unknown cryptosuites are rejected."""
        with pytest.raises(KeyFormatError, match="unknown cryptosuite"):
            generate_key("bbs-2023")

    def test_unknown_curve(self) -> None:
        """Unsupported curves are rejected."""
        with pytest.raises(KeyFormatError, match="unsupported curve"):
            generate_key("ecdsa-rdfc-2019", curve="P-521")

    def test_unknown_rsa_hash(self) -> None:
        """RSA hashes outside the alg table are rejected."""
        with pytest.raises(KeyFormatError, match="unsupported RSA hash"):
            generate_key("rsa-pss-rdfc-ih", hash="SHA-1")


class TestKeyPair:
    def test_immutable_jwks(self, p256_key) -> None:
        """The JWKs of a key pair cannot be modified."""
        with pytest.raises(TypeError):
            p256_key.public_jwk["crv"] = "P-384"

    def test_repr_hides_private_key(self, ed25519_key) -> None:
        """Debug output does not leak the private key."""
        assert ed25519_key.private_jwk["d"] not in repr(ed25519_key)

    def test_rejects_non_mapping(self) -> None:
        """JWKs must be mappings."""
        with pytest.raises(KeyFormatError, match="must be a mapping"):
            KeyPair(public_jwk="not a jwk", private_jwk={})


class TestJwkConversion:
    def test_ec_roundtrip(self, p256_key) -> None:
        """EC JWKs convert to key objects and back."""
        public = public_key_from_jwk(p256_key.public_jwk)
        private = private_key_from_jwk(p256_key.private_jwk)

        assert isinstance(public, ec.EllipticCurvePublicKey)
        assert jwk_from_public_key(public) == dict(p256_key.public_jwk)
        assert jwk_from_private_key(private) == dict(p256_key.private_jwk)

    def test_ed25519_roundtrip(self, ed25519_key) -> None:
        """OKP JWKs use PyNaCl keys."""
        assert isinstance(public_key_from_jwk(ed25519_key.public_jwk), VerifyKey)
        assert isinstance(private_key_from_jwk(ed25519_key.private_jwk), SigningKey)

    def test_rsa_without_crt_members(self, rsa_ssa_key) -> None:
        """RSA private keys are completed from n, e and d."""
        minimal = {k: rsa_ssa_key.private_jwk[k] for k in ("kty", "n", "e", "d")}

        key = private_key_from_jwk(minimal)

        assert isinstance(key, rsa.RSAPrivateKey)
        assert jwk_from_private_key(key)["p"] in (rsa_ssa_key.private_jwk["p"], rsa_ssa_key.private_jwk["q"])

    def test_missing_member(self) -> None:
        """Incomplete JWKs are reported by member name."""
        with pytest.raises(KeyFormatError, match="'y' is missing"):
            public_key_from_jwk({"kty": "EC", "crv": "P-256", "x": "AAAA"})

    def test_point_not_on_curve(self, p256_key) -> None:
        """Coordinates off the curve are rejected."""
        jwk = {**p256_key.public_jwk, "y": p256_key.public_jwk["x"]}

        with pytest.raises(KeyFormatError, match="invalid EC public key"):
            public_key_from_jwk(jwk)

    def test_bad_seed_length(self) -> None:
        """Ed25519 seeds must be 32 bytes."""
        with pytest.raises(KeyFormatError, match="32 bytes"):
            private_key_from_jwk({"kty": "OKP", "crv": "Ed25519", "x": "AA", "d": "AAAA"})

    def test_unsupported_kty(self) -> None:
        """Symmetric keys are not supported."""
        with pytest.raises(KeyFormatError, match="unsupported key type"):
            public_key_from_jwk({"kty": "oct", "k": "AAAA"})
