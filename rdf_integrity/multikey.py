"""Multikey encoding of public keys.

Format: z<base58btc(multicodec_prefix + raw_public_key)>

- Multicodec prefixes: 0xed01 (Ed25519), 0x8024 (P-256), 0x8124 (P-384)
- Multibase prefix: z (base58btc)

ECDSA keys are written as uncompressed points. The Multikey format
asks for compressed points; point compression is not implemented here.
"""

from collections.abc import Mapping
from typing import Any

import base58
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from nacl.signing import VerifyKey

from rdf_integrity.errors import InvalidMultikeyError, KeyFormatError
from rdf_integrity.keys import CURVES, PublicKey, jwk_from_public_key, public_key_from_jwk

# Multicodec prefixes (varint-encoded key type codes)
ED25519_MULTICODEC = bytes([0xED, 0x01])
P256_MULTICODEC = bytes([0x80, 0x24])
P384_MULTICODEC = bytes([0x81, 0x24])

# Multibase prefix for base58btc
BASE58BTC_PREFIX = "z"

_CURVE_PREFIXES = {"P-256": P256_MULTICODEC, "P-384": P384_MULTICODEC}
_PREFIX_CURVES = {prefix: curve for curve, prefix in _CURVE_PREFIXES.items()}


def encode(public_key: PublicKey) -> str:
    """Encode an Ed25519 or ECDSA public key as Multikey.

    Raises:
        InvalidMultikeyError: For key types Multikey does not cover here.
    """
    if isinstance(public_key, VerifyKey):
        combined = ED25519_MULTICODEC + bytes(public_key)
    elif isinstance(public_key, ec.EllipticCurvePublicKey):
        crv = jwk_from_public_key(public_key)["crv"]
        raw = public_key.public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)
        combined = _CURVE_PREFIXES[crv] + raw
    else:
        raise InvalidMultikeyError(f"no Multikey encoding for {type(public_key).__name__}")
    return BASE58BTC_PREFIX + base58.b58encode(combined).decode("ascii")


def encode_jwk(jwk: Mapping[str, Any]) -> str:
    """Encode a public JWK (EC or OKP) as Multikey."""
    try:
        return encode(public_key_from_jwk(jwk))
    except KeyFormatError as exc:
        raise InvalidMultikeyError(str(exc)) from exc


def decode(multikey: str) -> dict[str, str]:
    """Decode a Multikey string into a public JWK.

    Raises:
        InvalidMultikeyError: If the prefix, the base58 payload, the
            multicodec tag or the key bytes are invalid.
    """
    if not isinstance(multikey, str) or not multikey.startswith(BASE58BTC_PREFIX):
        raise InvalidMultikeyError("must use base58btc encoding (z prefix)")

    try:
        decoded = base58.b58decode(multikey[1:])
    except ValueError as exc:
        raise InvalidMultikeyError(f"invalid base58 encoding: {exc}") from exc

    tag, key_bytes = decoded[:2], decoded[2:]
    try:
        if tag == ED25519_MULTICODEC:
            public_key: PublicKey = VerifyKey(key_bytes)
        elif tag in _PREFIX_CURVES:
            curve = CURVES[_PREFIX_CURVES[tag]]()
            public_key = ec.EllipticCurvePublicKey.from_encoded_point(curve, key_bytes)
        else:
            raise InvalidMultikeyError(f"unsupported key type (multicodec prefix 0x{tag.hex()})")
    except (ValueError, TypeError) as exc:
        raise InvalidMultikeyError(f"invalid key bytes: {exc}") from exc
    return jwk_from_public_key(public_key)
