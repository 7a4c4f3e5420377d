"""Tests for signature primitives and encodings."""

import pytest

from rdf_integrity import DefaultSignatureProvider, SerializationError, SigningError, generate_key, resolve_params
from rdf_integrity.signing import canonicalize_jwk, decode_signature, encode_signature

ALL_KEYS = ["p256_key", "p384_key", "ed25519_key", "rsa_pss_key", "rsa_ssa_key"]


class TestCanonicalizeJwk:
    def test_sorted_members(self) -> None:
        """Members are sorted and whitespace is removed."""
        assert canonicalize_jwk('{ "y": "2", "kty": "EC", "x": "1" }') == '{"kty":"EC","x":"1","y":"2"}'

    def test_mapping_and_text_agree(self) -> None:
        """A mapping and its JSON text canonicalize identically."""
        jwk = {"n": "abc", "e": "AQAB", "kty": "RSA"}

        assert canonicalize_jwk(jwk) == canonicalize_jwk('{"kty":"RSA","e":"AQAB","n":"abc"}')

    @pytest.mark.parametrize("value", ["not json", "[1, 2]"])
    def test_rejects_non_objects(self, value: str) -> None:
        """Only JSON objects are JWKs."""
        with pytest.raises(SerializationError):
            canonicalize_jwk(value)


class TestSignatureEncoding:
    @pytest.mark.parametrize(("encoding", "prefix"), [("base58btc", "z"), ("base64url", "u")])
    def test_roundtrip(self, encoding: str, prefix: str) -> None:
        """Both multibase encodings decode back to the signature."""
        signature = bytes(range(64))

        encoded = encode_signature(signature, encoding)

        assert encoded.startswith(prefix)
        assert decode_signature(encoded) == signature

    def test_base64url_unpadded(self) -> None:
        """base64url values carry no padding."""
        assert "=" not in encode_signature(b"\x01\x02", "base64url")

    @pytest.mark.parametrize("value", ["", "m" + "AAAA", "z0OIl", "uAA!A", "uAA AA"])
    def test_decode_errors(self, value: str) -> None:
        """Unknown prefixes and malformed payloads are rejected."""
        with pytest.raises(SerializationError):
            decode_signature(value)

    def test_unknown_encoding(self) -> None:
        with pytest.raises(SerializationError, match="unknown signature encoding"):
            encode_signature(b"\x00", "base32")


class TestDefaultSignatureProvider:
    @pytest.mark.parametrize("fixture", ALL_KEYS)
    def test_sign_and_verify(self, fixture: str, request: pytest.FixtureRequest) -> None:
        """Signatures verify with the matching public key."""
        key = request.getfixturevalue(fixture)
        params = resolve_params(key.public_jwk)
        provider = DefaultSignatureProvider()

        signature = provider.sign(params, key.private_jwk, b"message")

        assert provider.verify(params, key.public_jwk, signature, b"message")
        assert not provider.verify(params, key.public_jwk, signature, b"other message")

    @pytest.mark.parametrize(("fixture", "length"), [("p256_key", 64), ("p384_key", 96), ("ed25519_key", 64)])
    def test_raw_signature_length(self, fixture: str, length: int, request: pytest.FixtureRequest) -> None:
        """ECDSA signatures are raw r||s, not DER."""
        key = request.getfixturevalue(fixture)
        params = resolve_params(key.public_jwk)

        assert len(DefaultSignatureProvider().sign(params, key.private_jwk, b"message")) == length

    def test_verify_wrong_key(self, p256_key) -> None:
        """Verification with another key fails."""
        other = generate_key("ecdsa-rdfc-2019")
        params = resolve_params(p256_key.public_jwk)
        provider = DefaultSignatureProvider()

        signature = provider.sign(params, p256_key.private_jwk, b"message")

        assert not provider.verify(params, other.public_jwk, signature, b"message")

    def test_verify_garbage_signature(self, ed25519_key) -> None:
        """Malformed signatures are invalid, not errors."""
        params = resolve_params(ed25519_key.public_jwk)

        assert not DefaultSignatureProvider().verify(params, ed25519_key.public_jwk, b"short", b"message")

    def test_sign_with_mismatched_params(self, ed25519_key, p256_key) -> None:
        """Parameters for another key family cannot be used."""
        params = resolve_params(p256_key.public_jwk)

        with pytest.raises(SigningError, match="do not fit"):
            DefaultSignatureProvider().sign(params, ed25519_key.private_jwk, b"message")

    def test_sign_with_broken_key(self) -> None:
        """Unusable private keys raise SigningError."""
        params = resolve_params({"kty": "EC", "crv": "P-256"})

        with pytest.raises(SigningError):
            DefaultSignatureProvider().sign(params, {"kty": "EC", "crv": "P-256"}, b"message")
