"""
Private key codec.

Parses private keys from standard PEM (PKCS#1, SEC1, PKCS#8) and from the
OpenSSH private key container, and serializes them back out in the
conventional encoding for each algorithm.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from keycert.algorithms import (
    Algorithm,
    CryptoPublicKey,
    PrivateKey,
    parse_private_key_der,
)
from keycert.exceptions import ParseError, UnsupportedKeyTypeError
from keycert.pem import PEMPreamble, decode_pem_block

logger = logging.getLogger(__name__)

_NO_ENCRYPTION = serialization.NoEncryption()


@dataclass(frozen=True, repr=False)
class PrivateKeyArtifacts:
    """PEM encodings of a private key. Handle as secret material."""

    private_key_pem: str
    private_key_pem_pkcs8: str
    private_key_openssh: str

    def __repr__(self) -> str:
        return "PrivateKeyArtifacts(<redacted>)"


def parse_private_key_pem(data: bytes | str) -> tuple[PrivateKey, Algorithm]:
    """
    Parse a private key encoded as standard PEM.

    Args:
        data: PEM text; only the first block is considered

    Returns:
        The tagged private key and its algorithm

    Raises:
        DecodeError: If no PEM block is found
        UnknownPreambleError: If the block label has no registered parser
        ParseError: If the payload does not match the label
        UnknownAlgorithmError: If the key is not RSA, ECDSA or ED25519
    """
    block = decode_pem_block(data)
    preamble = block.preamble
    private_key = parse_private_key_der(preamble, block.der)
    logger.debug("Parsed %r from %s block", private_key, preamble)
    return private_key, private_key.algorithm


def parse_private_key_openssh_pem(data: bytes | str) -> tuple[PrivateKey, Algorithm]:
    """
    Parse a private key in the OpenSSH container format.

    Like OpenSSH itself, standard PEM private keys are accepted here too;
    only blocks labelled ``OPENSSH PRIVATE KEY`` go through the OpenSSH
    decoder.

    Raises:
        DecodeError: If no PEM block is found
        UnknownPreambleError: If the block label has no registered parser
        ParseError: If the container is malformed or encrypted
        UnknownAlgorithmError: If the key is not RSA, ECDSA or ED25519
    """
    block = decode_pem_block(data)
    if block.preamble is not PEMPreamble.PRIVATE_KEY_OPENSSH:
        return parse_private_key_pem(data)

    raw = data.encode("utf-8") if isinstance(data, str) else data
    try:
        key = serialization.load_ssh_private_key(raw, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        msg = f"failed to parse openssh private key: {exc}"
        raise ParseError(msg) from exc

    private_key = PrivateKey.wrap(key)
    logger.debug("Parsed %r from OpenSSH container", private_key)
    return private_key, private_key.algorithm


def derive_public_key(private_key: PrivateKey | object) -> CryptoPublicKey:
    """
    Return the public counterpart of ``private_key``.

    Accepts a tagged :class:`PrivateKey` or a bare ``cryptography`` key.

    Raises:
        UnsupportedKeyTypeError: If the key exposes no public key
    """
    derive = getattr(private_key, "public_key", None)
    if not callable(derive):
        msg = f"unsupported private key type: {type(private_key).__name__}"
        raise UnsupportedKeyTypeError(msg)
    return derive()


def private_key_to_pem(private_key: PrivateKey) -> str:
    """
    Serialize in the conventional PEM form for the algorithm.

    RSA keys use PKCS#1, ECDSA keys SEC1 and ED25519 keys PKCS#8.
    """
    if private_key.algorithm is Algorithm.ED25519:
        return private_key_to_pkcs8_pem(private_key)
    return private_key.key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=_NO_ENCRYPTION,
    ).decode("ascii")


def private_key_to_pkcs8_pem(private_key: PrivateKey) -> str:
    return private_key.key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=_NO_ENCRYPTION,
    ).decode("ascii")


def private_key_to_openssh_pem(private_key: PrivateKey) -> str:
    """
    Serialize into the OpenSSH private key container.

    Returns an empty string for keys OpenSSH cannot represent (ECDSA P-224).
    """
    try:
        encoded = private_key.key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.OpenSSH,
            encryption_algorithm=_NO_ENCRYPTION,
        )
    except ValueError:
        logger.debug("No OpenSSH encoding for %r", private_key)
        return ""
    return encoded.decode("ascii")


def export_private_key(private_key: PrivateKey) -> PrivateKeyArtifacts:
    return PrivateKeyArtifacts(
        private_key_pem=private_key_to_pem(private_key),
        private_key_pem_pkcs8=private_key_to_pkcs8_pem(private_key),
        private_key_openssh=private_key_to_openssh_pem(private_key),
    )
