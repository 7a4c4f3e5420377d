"""Mapping of key attributes onto signature algorithms and cryptosuites.

Dispatch is a lookup over a closed set of key families; keys outside the
tables below are rejected rather than guessed at.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from rdf_integrity.errors import CryptosuiteError
from rdf_integrity.problems import InvalidVerificationMethod, UnclassifiedError

if TYPE_CHECKING:
    from rdf_integrity.keys import KeyPair

# Salt length used with RSA-PSS, in bytes
SALT_LENGTH = 32


class Cryptosuite(str, Enum):
    """Cryptosuite identifiers written into proof graphs."""

    ECDSA = "ecdsa-rdfc-2019"
    EDDSA = "eddsa-rdfc-2022"
    RSA_PSS = "rsa-pss-rdfc-ih"
    RSA_SSA = "rsa-ssa-rdfc-ih"


class KeyFamily(str, Enum):
    EC_P256 = "EC-P256"
    EC_P384 = "EC-P384"
    OKP_ED25519 = "OKP-Ed25519"
    RSA_PSS = "RSA-PSS"
    RSA_SSA = "RSA-SSA"


@dataclass(frozen=True, slots=True)
class AlgorithmParams:
    """Everything the signature provider needs to know about a key.

    Attributes:
        family: The key family.
        name: Algorithm name (ECDSA, Ed25519, RSA-PSS, RSASSA-PKCS1-v1_5).
        cryptosuite: Cryptosuite identifier for proof graphs.
        hash: Signature hash algorithm, None for Ed25519.
        canonical_hash: Hash used over canonical datasets.
        curve: Named curve for EC and OKP keys.
        salt_length: PSS salt length, RSA-PSS only.
    """

    family: KeyFamily
    name: str
    cryptosuite: Cryptosuite
    hash: str | None = None
    canonical_hash: str = "sha256"
    curve: str | None = None
    salt_length: int | None = None


EC_PARAMS: Mapping[str, AlgorithmParams] = {
    "P-256": AlgorithmParams(
        family=KeyFamily.EC_P256,
        name="ECDSA",
        cryptosuite=Cryptosuite.ECDSA,
        hash="sha256",
        curve="P-256",
    ),
    "P-384": AlgorithmParams(
        family=KeyFamily.EC_P384,
        name="ECDSA",
        cryptosuite=Cryptosuite.ECDSA,
        hash="sha384",
        canonical_hash="sha384",
        curve="P-384",
    ),
}

OKP_PARAMS: Mapping[str, AlgorithmParams] = {
    "Ed25519": AlgorithmParams(
        family=KeyFamily.OKP_ED25519,
        name="Ed25519",
        cryptosuite=Cryptosuite.EDDSA,
        curve="Ed25519",
    ),
}


def _pss(hash_name: str) -> AlgorithmParams:
    return AlgorithmParams(
        family=KeyFamily.RSA_PSS,
        name="RSA-PSS",
        cryptosuite=Cryptosuite.RSA_PSS,
        hash=hash_name,
        salt_length=SALT_LENGTH,
    )


def _ssa(hash_name: str) -> AlgorithmParams:
    return AlgorithmParams(
        family=KeyFamily.RSA_SSA,
        name="RSASSA-PKCS1-v1_5",
        cryptosuite=Cryptosuite.RSA_SSA,
        hash=hash_name,
    )


RSA_PARAMS: Mapping[str, AlgorithmParams] = {
    "PS256": _pss("sha256"),
    "PS384": _pss("sha384"),
    "PS512": _pss("sha512"),
    "RS256": _ssa("sha256"),
    "RS384": _ssa("sha384"),
    "RS512": _ssa("sha512"),
}

_TABLES: Mapping[str, tuple[str, Mapping[str, AlgorithmParams]]] = {
    "EC": ("crv", EC_PARAMS),
    "OKP": ("crv", OKP_PARAMS),
    "RSA": ("alg", RSA_PARAMS),
}


def resolve_params(jwk: Mapping[str, Any]) -> AlgorithmParams:
    """Algorithm parameters for a JWK.

    Raises:
        CryptosuiteError: With an Unclassified_Error problem if the
            kty/crv/alg combination is not supported.
    """
    kty = jwk.get("kty")
    if kty not in _TABLES:
        raise CryptosuiteError(UnclassifiedError(f"Unsupported key type 'kty': {kty!r}"))
    member, table = _TABLES[kty]
    selector = jwk.get(member)
    try:
        return table[selector]
    except (KeyError, TypeError):
        raise CryptosuiteError(
            UnclassifiedError(f"Key's error in '{member}': {selector!r} is not supported for {kty} keys")
        ) from None


# JWK members that identify the public half of a key
_PUBLIC_MEMBERS = ("kty", "crv", "alg", "x", "y", "n", "e")


def identify_cryptosuite(key_pair: "KeyPair") -> Cryptosuite:
    """Cryptosuite for a key pair.

    The two halves must describe the same key: kty, crv and alg must agree,
    and the public members carried by the private JWK must match the public
    JWK.

    Raises:
        CryptosuiteError: With an Invalid_Verification_Method problem.
    """
    public, private = key_pair.public_jwk, key_pair.private_jwk
    mismatched = [
        member
        for member in _PUBLIC_MEMBERS
        if member in private and private.get(member) != public.get(member)
    ]
    mismatched += [
        member for member in ("kty", "crv", "alg") if member in public and member not in private
    ]
    if mismatched:
        raise CryptosuiteError(
            InvalidVerificationMethod(f"Keys are not in pair (mismatch in {', '.join(mismatched)})")
        )
    try:
        params = resolve_params(public)
    except CryptosuiteError as exc:
        raise CryptosuiteError(InvalidVerificationMethod(f"Unknown algorithm: {exc.problem.detail}")) from exc
    if key_pair.cryptosuite is not None and key_pair.cryptosuite != params.cryptosuite:
        raise CryptosuiteError(
            InvalidVerificationMethod(
                f"Declared cryptosuite {key_pair.cryptosuite.value} does not match "
                f"the key ({params.cryptosuite.value})"
            )
        )
    return params.cryptosuite
