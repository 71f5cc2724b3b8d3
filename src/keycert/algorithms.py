"""
Key algorithm registry.

Each :class:`Algorithm` has exactly one generator, and each private-key
:class:`~keycert.pem.PEMPreamble` has one parser. Both tables are plain
dictionaries so new algorithms or encodings can be registered without
touching call sites.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

from asn1crypto import core as asn1_core, keys as asn1_keys
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from keycert.exceptions import (
    KeyGenerationError,
    ParseError,
    UnknownAlgorithmError,
    UnknownPreambleError,
    ValidationError,
)
from keycert.pem import PEMPreamble

logger = logging.getLogger(__name__)

CryptoPrivateKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey]
CryptoPublicKey = Union[rsa.RSAPublicKey, ec.EllipticCurvePublicKey, ed25519.Ed25519PublicKey]

DEFAULT_RSA_BITS = 2048
RSA_PUBLIC_EXPONENT = 65537


class Algorithm(str, Enum):
    """Asymmetric key algorithms supported by the engine."""

    RSA = "RSA"
    ECDSA = "ECDSA"
    ED25519 = "ED25519"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def supported(cls) -> list[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: Algorithm | str) -> Algorithm:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError as exc:
            raise ValidationError.unsupported_value("algorithm", value, cls.supported()) from exc


class ECDSACurve(str, Enum):
    """NIST curves available for ECDSA keys."""

    P224 = "P224"
    P256 = "P256"
    P384 = "P384"
    P521 = "P521"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def supported(cls) -> list[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: ECDSACurve | str) -> ECDSACurve:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError as exc:
            msg = f"invalid ECDSA curve; supported values are: [{' '.join(cls.supported())}]"
            raise ValidationError(msg, field="ecdsa_curve") from exc

    @property
    def curve(self) -> ec.EllipticCurve:
        return _CURVES[self]()

    @classmethod
    def from_curve(cls, curve: ec.EllipticCurve) -> ECDSACurve | None:
        """Map a ``cryptography`` curve back to its tag, or None for other curves."""
        for tag, factory in _CURVES.items():
            if factory.name == curve.name:
                return tag
        return None


_CURVES: dict[ECDSACurve, type[ec.EllipticCurve]] = {
    ECDSACurve.P224: ec.SECP224R1,
    ECDSACurve.P256: ec.SECP256R1,
    ECDSACurve.P384: ec.SECP384R1,
    ECDSACurve.P521: ec.SECP521R1,
}


@dataclass(frozen=True)
class KeyGenParams:
    """Algorithm-specific generation parameters. ED25519 ignores both."""

    rsa_bits: int = DEFAULT_RSA_BITS
    ecdsa_curve: ECDSACurve | str = ECDSACurve.P224


@dataclass(frozen=True, repr=False)
class PrivateKey:
    """
    Private key tagged with the algorithm it belongs to.

    The tag is fixed when the key is generated or parsed, so callers never
    need to inspect the concrete key type again.
    """

    algorithm: Algorithm
    key: CryptoPrivateKey

    def __repr__(self) -> str:
        # Never render key material.
        curve = f", curve={self.ecdsa_curve}" if self.algorithm is Algorithm.ECDSA else ""
        return f"PrivateKey(algorithm={self.algorithm}{curve})"

    @classmethod
    def wrap(cls, key: object) -> PrivateKey:
        """
        Tag a ``cryptography`` private key with its algorithm.

        Raises:
            UnknownAlgorithmError: If the key is not RSA, ED25519 or ECDSA
                on one of the :class:`ECDSACurve` curves
        """
        if isinstance(key, rsa.RSAPrivateKey):
            return cls(Algorithm.RSA, key)
        if isinstance(key, ec.EllipticCurvePrivateKey):
            if ECDSACurve.from_curve(key.curve) is None:
                msg = (
                    f"unsupported ECDSA curve {key.curve.name}; "
                    f"supported values are: [{' '.join(ECDSACurve.supported())}]"
                )
                raise UnknownAlgorithmError(msg, field="ecdsa_curve")
            return cls(Algorithm.ECDSA, key)
        if isinstance(key, ed25519.Ed25519PrivateKey):
            return cls(Algorithm.ED25519, key)
        msg = f"unsupported private key type: {type(key).__name__}"
        raise UnknownAlgorithmError(msg)

    @property
    def ecdsa_curve(self) -> ECDSACurve | None:
        if isinstance(self.key, ec.EllipticCurvePrivateKey):
            return ECDSACurve.from_curve(self.key.curve)
        return None

    @property
    def rsa_bits(self) -> int | None:
        if isinstance(self.key, rsa.RSAPrivateKey):
            return self.key.key_size
        return None

    def public_key(self) -> CryptoPublicKey:
        return self.key.public_key()


KeyGenerator = Callable[[KeyGenParams], CryptoPrivateKey]
KeyParser = Callable[[bytes], object]


def _generate_rsa(params: KeyGenParams) -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=RSA_PUBLIC_EXPONENT, key_size=params.rsa_bits)


def _generate_ecdsa(params: KeyGenParams) -> ec.EllipticCurvePrivateKey:
    curve = ECDSACurve.parse(params.ecdsa_curve)
    return ec.generate_private_key(curve.curve)


def _generate_ed25519(params: KeyGenParams) -> ed25519.Ed25519PrivateKey:
    return ed25519.Ed25519PrivateKey.generate()


KEY_GENERATORS: dict[Algorithm, KeyGenerator] = {
    Algorithm.RSA: _generate_rsa,
    Algorithm.ECDSA: _generate_ecdsa,
    Algorithm.ED25519: _generate_ed25519,
}


def _structured(structure: type[asn1_core.Sequence], description: str) -> KeyParser:
    """
    Build a parser that only accepts DER laid out as ``structure``.

    ``load_der_private_key`` detects the container on its own, so the
    payload is first checked against the ASN.1 structure its preamble names.
    """

    def parser(der: bytes) -> object:
        try:
            # .native parses every field against the structure
            structure.load(der, strict=True).native
        except (ValueError, TypeError, KeyError) as exc:
            msg = f"payload is not a {description}: {exc}"
            raise ValueError(msg) from exc
        return serialization.load_der_private_key(der, password=None)

    return parser


KEY_PARSERS: dict[PEMPreamble, KeyParser] = {
    PEMPreamble.PRIVATE_KEY_RSA: _structured(asn1_keys.RSAPrivateKey, "PKCS#1 RSA private key"),
    PEMPreamble.PRIVATE_KEY_EC: _structured(asn1_keys.ECPrivateKey, "SEC1 EC private key"),
    PEMPreamble.PRIVATE_KEY_PKCS8: _structured(asn1_keys.PrivateKeyInfo, "PKCS#8 private key"),
}


def generate_private_key(
    algorithm: Algorithm | str, params: KeyGenParams | None = None
) -> PrivateKey:
    """
    Generate a new private key for ``algorithm``.

    Args:
        algorithm: Algorithm tag (or its name)
        params: RSA bit length / ECDSA curve; defaults apply when omitted

    Returns:
        The tagged private key

    Raises:
        ValidationError: If the algorithm or curve is not supported
        KeyGenerationError: If the primitive library refuses to generate the key
    """
    algorithm = Algorithm.parse(algorithm)
    params = params or KeyGenParams()
    generator = KEY_GENERATORS[algorithm]

    try:
        key = generator(params)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        msg = f"failed to generate {algorithm} key: {exc}"
        raise KeyGenerationError(msg, field="rsa_bits" if algorithm is Algorithm.RSA else None) from exc

    private_key = PrivateKey.wrap(key)
    logger.info("Generated %r", private_key)
    return private_key


def parse_private_key_der(preamble: PEMPreamble, der: bytes) -> PrivateKey:
    """
    Decode a private key payload using the parser registered for ``preamble``.

    Raises:
        UnknownPreambleError: If no parser is registered for the preamble
        ParseError: If the payload is malformed for the preamble
        UnknownAlgorithmError: If the decoded key is not a supported algorithm
    """
    parser = KEY_PARSERS.get(preamble)
    if parser is None:
        msg = f"unable to determine parser for PEM preamble: {preamble}"
        raise UnknownPreambleError(msg)

    try:
        key = parser(der)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        msg = f"failed to parse private key given PEM preamble '{preamble}': {exc}"
        raise ParseError(msg) from exc

    return PrivateKey.wrap(key)
