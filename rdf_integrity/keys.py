"""Key pairs and JWK conversion.

Security:
- EC and RSA keys go through the cryptography package
- Ed25519 keys use PyNaCl (libsodium bindings)
- Debug representations only show public info, never private members
"""

import base64
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Union

from cryptography.hazmat.primitives.asymmetric import ec, rsa
from nacl.signing import SigningKey, VerifyKey

from rdf_integrity.cryptosuites import RSA_PARAMS, Cryptosuite
from rdf_integrity.errors import KeyFormatError

PublicKey = Union[ec.EllipticCurvePublicKey, rsa.RSAPublicKey, VerifyKey]
PrivateKey = Union[ec.EllipticCurvePrivateKey, rsa.RSAPrivateKey, SigningKey]

CURVES: Mapping[str, type[ec.EllipticCurve]] = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
}

CURVE_NAMES: Mapping[str, str] = {"secp256r1": "P-256", "secp384r1": "P-384"}

# Length of one EC coordinate, in bytes
COORDINATE_LENGTHS: Mapping[str, int] = {"P-256": 32, "P-384": 48}

DEFAULT_CURVE = "P-256"
DEFAULT_MODULUS_LENGTH = 2048
DEFAULT_HASH = "SHA-256"

ED25519_KEY_LENGTH = 32


def b64url_encode(data: bytes) -> str:
    """Unpadded base64url, as used by JWK."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


def _int_to_b64(value: int, length: int | None = None) -> str:
    if length is None:
        length = max(1, (value.bit_length() + 7) // 8)
    return b64url_encode(value.to_bytes(length, "big"))


def _b64_to_int(text: str) -> int:
    return int.from_bytes(b64url_decode(text), "big")


def _member(jwk: Mapping[str, Any], name: str) -> str:
    value = jwk.get(name)
    if not isinstance(value, str) or not value:
        raise KeyFormatError(f"JWK member '{name}' is missing")
    return value


def xsd_datetime(value: str | datetime | None) -> str | None:
    """xsd:dateTime lexical form in UTC; strings pass through unchanged."""
    if value is None or isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class KeyPair:
    """A public/private key pair in JWK form, with optional key metadata.

    Attributes:
        public_jwk: Public key JWK.
        private_jwk: Private key JWK.
        controller: IRI of the key's controller.
        expires: Expiration date (xsd:dateTime lexical form or datetime).
        revoked: Revocation date (xsd:dateTime lexical form or datetime).
        cryptosuite: Declared cryptosuite; checked against the key.
    """

    public_jwk: Mapping[str, Any]
    private_jwk: Mapping[str, Any]
    controller: str | None = None
    expires: str | None = None
    revoked: str | None = None
    cryptosuite: Cryptosuite | None = None

    def __post_init__(self) -> None:
        for name in ("public_jwk", "private_jwk"):
            value = getattr(self, name)
            if not isinstance(value, Mapping):
                raise KeyFormatError(f"{name} must be a mapping, got {type(value).__name__}")
            object.__setattr__(self, name, MappingProxyType(dict(value)))
        object.__setattr__(self, "expires", xsd_datetime(self.expires))
        object.__setattr__(self, "revoked", xsd_datetime(self.revoked))
        if self.cryptosuite is not None:
            try:
                object.__setattr__(self, "cryptosuite", Cryptosuite(self.cryptosuite))
            except ValueError as exc:
                raise KeyFormatError(f"unknown cryptosuite {self.cryptosuite!r}") from exc

    @property
    def kty(self) -> str | None:
        return self.public_jwk.get("kty")

    def __repr__(self) -> str:
        detail = self.public_jwk.get("crv") or self.public_jwk.get("alg")
        return f"KeyPair(kty={self.kty}, {detail}, controller={self.controller})"


def public_key_from_jwk(jwk: Mapping[str, Any]) -> PublicKey:
    """Convert a public JWK into a key object.

    Raises:
        KeyFormatError: If the JWK is incomplete or does not describe a
            valid key.
    """
    kty = jwk.get("kty")
    try:
        if kty == "EC":
            crv = _member(jwk, "crv")
            if crv not in CURVES:
                raise KeyFormatError(f"unsupported curve {crv!r}")
            numbers = ec.EllipticCurvePublicNumbers(
                _b64_to_int(_member(jwk, "x")), _b64_to_int(_member(jwk, "y")), CURVES[crv]()
            )
            return numbers.public_key()
        if kty == "RSA":
            numbers = rsa.RSAPublicNumbers(_b64_to_int(_member(jwk, "e")), _b64_to_int(_member(jwk, "n")))
            return numbers.public_key()
        if kty == "OKP":
            if jwk.get("crv") != "Ed25519":
                raise KeyFormatError(f"unsupported OKP curve {jwk.get('crv')!r}")
            return VerifyKey(b64url_decode(_member(jwk, "x")))
    except (ValueError, TypeError) as exc:
        raise KeyFormatError(f"invalid {kty} public key: {exc}") from exc
    raise KeyFormatError(f"unsupported key type {kty!r}")


def private_key_from_jwk(jwk: Mapping[str, Any]) -> PrivateKey:
    """Convert a private JWK into a key object.

    RSA keys without CRT members are completed from n, e and d.

    Raises:
        KeyFormatError: If the JWK is incomplete or invalid.
    """
    kty = jwk.get("kty")
    try:
        if kty == "EC":
            crv = _member(jwk, "crv")
            if crv not in CURVES:
                raise KeyFormatError(f"unsupported curve {crv!r}")
            private_value = _b64_to_int(_member(jwk, "d"))
            if "x" not in jwk or "y" not in jwk:
                return ec.derive_private_key(private_value, CURVES[crv]())
            public_numbers = ec.EllipticCurvePublicNumbers(
                _b64_to_int(_member(jwk, "x")), _b64_to_int(_member(jwk, "y")), CURVES[crv]()
            )
            return ec.EllipticCurvePrivateNumbers(private_value, public_numbers).private_key()
        if kty == "RSA":
            n = _b64_to_int(_member(jwk, "n"))
            e = _b64_to_int(_member(jwk, "e"))
            d = _b64_to_int(_member(jwk, "d"))
            if all(member in jwk for member in ("p", "q", "dp", "dq", "qi")):
                p, q = _b64_to_int(jwk["p"]), _b64_to_int(jwk["q"])
                dmp1, dmq1, iqmp = _b64_to_int(jwk["dp"]), _b64_to_int(jwk["dq"]), _b64_to_int(jwk["qi"])
            else:
                p, q = rsa.rsa_recover_prime_factors(n, e, d)
                dmp1, dmq1, iqmp = rsa.rsa_crt_dmp1(d, p), rsa.rsa_crt_dmq1(d, q), rsa.rsa_crt_iqmp(p, q)
            numbers = rsa.RSAPrivateNumbers(p, q, d, dmp1, dmq1, iqmp, rsa.RSAPublicNumbers(e, n))
            return numbers.private_key()
        if kty == "OKP":
            if jwk.get("crv") != "Ed25519":
                raise KeyFormatError(f"unsupported OKP curve {jwk.get('crv')!r}")
            seed = b64url_decode(_member(jwk, "d"))
            if len(seed) != ED25519_KEY_LENGTH:
                raise KeyFormatError(f"Ed25519 seed must be {ED25519_KEY_LENGTH} bytes, got {len(seed)}")
            return SigningKey(seed)
    except (ValueError, TypeError) as exc:
        raise KeyFormatError(f"invalid {kty} private key: {exc}") from exc
    raise KeyFormatError(f"unsupported key type {kty!r}")


def jwk_from_public_key(key: PublicKey, alg: str | None = None) -> dict[str, str]:
    """Export a public key object as a JWK."""
    if isinstance(key, ec.EllipticCurvePublicKey):
        crv = CURVE_NAMES.get(key.curve.name)
        if crv is None:
            raise KeyFormatError(f"unsupported curve {key.curve.name}")
        numbers = key.public_numbers()
        length = COORDINATE_LENGTHS[crv]
        return {
            "kty": "EC",
            "crv": crv,
            "x": _int_to_b64(numbers.x, length),
            "y": _int_to_b64(numbers.y, length),
        }
    if isinstance(key, rsa.RSAPublicKey):
        numbers = key.public_numbers()
        jwk = {"kty": "RSA", "n": _int_to_b64(numbers.n), "e": _int_to_b64(numbers.e)}
        if alg is not None:
            jwk["alg"] = alg
        return jwk
    if isinstance(key, VerifyKey):
        return {"kty": "OKP", "crv": "Ed25519", "x": b64url_encode(bytes(key))}
    raise KeyFormatError(f"unsupported key object {type(key).__name__}")


def jwk_from_private_key(key: PrivateKey, alg: str | None = None) -> dict[str, str]:
    """Export a private key object as a JWK (public members included)."""
    if isinstance(key, ec.EllipticCurvePrivateKey):
        jwk = jwk_from_public_key(key.public_key())
        jwk["d"] = _int_to_b64(key.private_numbers().private_value, COORDINATE_LENGTHS[jwk["crv"]])
        return jwk
    if isinstance(key, rsa.RSAPrivateKey):
        jwk = jwk_from_public_key(key.public_key(), alg)
        numbers = key.private_numbers()
        jwk.update(
            d=_int_to_b64(numbers.d),
            p=_int_to_b64(numbers.p),
            q=_int_to_b64(numbers.q),
            dp=_int_to_b64(numbers.dmp1),
            dq=_int_to_b64(numbers.dmq1),
            qi=_int_to_b64(numbers.iqmp),
        )
        return jwk
    if isinstance(key, SigningKey):
        jwk = jwk_from_public_key(key.verify_key)
        jwk["d"] = b64url_encode(bytes(key))
        return jwk
    raise KeyFormatError(f"unsupported key object {type(key).__name__}")


def _rsa_alg(prefix: str, hash_name: str) -> str:
    alg = prefix + hash_name.upper().replace("SHA-", "").replace("SHA", "")
    if alg not in RSA_PARAMS:
        raise KeyFormatError(f"unsupported RSA hash {hash_name!r}")
    return alg


def generate_key(
    suite: Cryptosuite | str,
    *,
    curve: str = DEFAULT_CURVE,
    modulus_length: int = DEFAULT_MODULUS_LENGTH,
    hash: str = DEFAULT_HASH,
    controller: str | None = None,
    expires: str | datetime | None = None,
    revoked: str | datetime | None = None,
) -> KeyPair:
    """Generate a new key pair for a cryptosuite.

    A convenience for tests and small deployments; keys are exported as JWK.

    Args:
        suite: The cryptosuite the key is meant for.
        curve: Named curve for ECDSA keys (P-256 or P-384).
        modulus_length: Modulus size for RSA keys.
        hash: Hash function for RSA keys (SHA-256, SHA-384, SHA-512).
        controller: Optional controller IRI.
        expires: Optional expiration date.
        revoked: Optional revocation date.

    Raises:
        KeyFormatError: If the suite or the key details are not supported.
    """
    try:
        suite = Cryptosuite(suite)
    except ValueError as exc:
        raise KeyFormatError(f"unknown cryptosuite {suite!r}") from exc

    alg = None
    private_key: PrivateKey
    if suite is Cryptosuite.ECDSA:
        if curve not in CURVES:
            raise KeyFormatError(f"unsupported curve {curve!r}")
        private_key = ec.generate_private_key(CURVES[curve]())
    elif suite is Cryptosuite.EDDSA:
        private_key = SigningKey.generate()
    else:
        alg = _rsa_alg("PS" if suite is Cryptosuite.RSA_PSS else "RS", hash)
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=modulus_length)

    private_jwk = jwk_from_private_key(private_key, alg)
    if isinstance(private_key, SigningKey):
        public_jwk = jwk_from_public_key(private_key.verify_key)
    else:
        public_jwk = jwk_from_public_key(private_key.public_key(), alg)
    return KeyPair(
        public_jwk=public_jwk,
        private_jwk=private_jwk,
        controller=controller,
        expires=expires,
        revoked=revoked,
        cryptosuite=suite,
    )
