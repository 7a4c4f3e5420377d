"""Signature primitives, multibase signature values and JWK canonicalization.

ECDSA signatures are raw r||s byte strings (IEEE P1363), as Data Integrity
cryptosuites expect, not DER.
"""

import base64
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import base58
import canonicaljson
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature, encode_dss_signature
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from rdf_integrity.cryptosuites import AlgorithmParams, KeyFamily
from rdf_integrity.errors import KeyFormatError, SerializationError, SigningError
from rdf_integrity.keys import COORDINATE_LENGTHS, private_key_from_jwk, public_key_from_jwk

logger = logging.getLogger(__name__)

BASE58BTC_PREFIX = "z"
BASE64URL_PREFIX = "u"

SIGNATURE_ENCODINGS = {"base58btc": BASE58BTC_PREFIX, "base64url": BASE64URL_PREFIX}

_HASHES = {"sha256": hashes.SHA256, "sha384": hashes.SHA384, "sha512": hashes.SHA512}


def canonicalize_jwk(value: str | Mapping[str, Any]) -> str:
    """Canonical JSON text of a JWK (sorted keys, no whitespace).

    Accepts the JSON text stored in a publicKeyJwk literal or a mapping.

    Raises:
        SerializationError: If the text is not a JSON object.
    """
    try:
        if isinstance(value, str):
            value = json.loads(value)
        if not isinstance(value, Mapping):
            raise SerializationError("JWK must be a JSON object")
        return canonicaljson.encode_canonical_json(dict(value)).decode("utf-8")
    except (ValueError, TypeError) as exc:
        raise SerializationError(f"JWK canonicalization failed: {exc}") from exc


def encode_signature(signature: bytes, encoding: str = "base58btc") -> str:
    """Multibase-encode a raw signature."""
    if encoding == "base58btc":
        return BASE58BTC_PREFIX + base58.b58encode(signature).decode("ascii")
    if encoding == "base64url":
        return BASE64URL_PREFIX + base64.urlsafe_b64encode(signature).rstrip(b"=").decode("ascii")
    raise SerializationError(f"unknown signature encoding {encoding!r}")


def decode_signature(value: str) -> bytes:
    """Decode a multibase proof value.

    Raises:
        SerializationError: For an unknown multibase prefix or a malformed
            payload.
    """
    if not value:
        raise SerializationError("empty proof value")
    prefix, payload = value[0], value[1:]
    try:
        if prefix == BASE58BTC_PREFIX:
            return base58.b58decode(payload)
        if prefix == BASE64URL_PREFIX:
            return base64.b64decode(payload + "=" * (-len(payload) % 4), altchars=b"-_", validate=True)
    except ValueError as exc:
        raise SerializationError(f"malformed proof value: {exc}") from exc
    raise SerializationError(f"unsupported multibase prefix {prefix!r}")


@runtime_checkable
class SignatureProvider(Protocol):
    def sign(self, params: AlgorithmParams, private_jwk: Mapping[str, Any], data: bytes) -> bytes: ...

    def verify(
        self, params: AlgorithmParams, public_jwk: Mapping[str, Any], signature: bytes, data: bytes
    ) -> bool: ...


class DefaultSignatureProvider:
    """Signatures through cryptography (ECDSA, RSA) and PyNaCl (Ed25519)."""

    def sign(self, params: AlgorithmParams, private_jwk: Mapping[str, Any], data: bytes) -> bytes:
        """Sign data with a private JWK.

        Raises:
            SigningError: If the key cannot be used or signing fails.
        """
        try:
            key = private_key_from_jwk(private_jwk)
        except KeyFormatError as exc:
            raise SigningError(str(exc)) from exc

        try:
            if params.family is KeyFamily.OKP_ED25519 and isinstance(key, SigningKey):
                return bytes(key.sign(data).signature)
            if params.family in (KeyFamily.EC_P256, KeyFamily.EC_P384) and isinstance(
                key, ec.EllipticCurvePrivateKey
            ):
                der = key.sign(data, ec.ECDSA(_HASHES[params.hash]()))
                r, s = decode_dss_signature(der)
                length = COORDINATE_LENGTHS[params.curve]
                return r.to_bytes(length, "big") + s.to_bytes(length, "big")
            if params.family is KeyFamily.RSA_PSS and isinstance(key, rsa.RSAPrivateKey):
                return key.sign(data, _pss_padding(params), _HASHES[params.hash]())
            if params.family is KeyFamily.RSA_SSA and isinstance(key, rsa.RSAPrivateKey):
                return key.sign(data, padding.PKCS1v15(), _HASHES[params.hash]())
        except ValueError as exc:
            raise SigningError(str(exc)) from exc
        raise SigningError(f"{params.name} parameters do not fit a {type(key).__name__}")

    def verify(
        self, params: AlgorithmParams, public_jwk: Mapping[str, Any], signature: bytes, data: bytes
    ) -> bool:
        """Check a signature; any failure yields False."""
        try:
            key = public_key_from_jwk(public_jwk)
        except KeyFormatError as exc:
            logger.debug("Public key rejected: %s", exc)
            return False

        try:
            if params.family is KeyFamily.OKP_ED25519 and isinstance(key, VerifyKey):
                key.verify(data, signature)
                return True
            if params.family in (KeyFamily.EC_P256, KeyFamily.EC_P384) and isinstance(
                key, ec.EllipticCurvePublicKey
            ):
                length = COORDINATE_LENGTHS[params.curve]
                if len(signature) != 2 * length:
                    return False
                der = encode_dss_signature(
                    int.from_bytes(signature[:length], "big"), int.from_bytes(signature[length:], "big")
                )
                key.verify(der, data, ec.ECDSA(_HASHES[params.hash]()))
                return True
            if params.family is KeyFamily.RSA_PSS and isinstance(key, rsa.RSAPublicKey):
                key.verify(signature, data, _pss_padding(params), _HASHES[params.hash]())
                return True
            if params.family is KeyFamily.RSA_SSA and isinstance(key, rsa.RSAPublicKey):
                key.verify(signature, data, padding.PKCS1v15(), _HASHES[params.hash]())
                return True
        except (InvalidSignature, BadSignatureError, ValueError):
            return False
        logger.debug("%s parameters do not fit a %s", params.name, type(key).__name__)
        return False


def _pss_padding(params: AlgorithmParams) -> padding.PSS:
    return padding.PSS(mgf=padding.MGF1(_HASHES[params.hash]()), salt_length=params.salt_length)
