"""
Public key artifacts: PKIX PEM, SSH authorized key line and fingerprints.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization

from keycert.algorithms import Algorithm, CryptoPublicKey, PrivateKey
from keycert.codec import derive_public_key, parse_private_key_openssh_pem, parse_private_key_pem
from keycert.exceptions import EncodingError
from keycert.pem import PEMPreamble, encode_pem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublicKeyArtifacts:
    """
    Public material derived from a private key.

    The three SSH fields are empty strings when the key has no SSH wire
    representation (ECDSA P-224); ``public_key_pem`` is always set.
    """

    public_key_pem: str
    public_key_openssh: str
    public_key_fingerprint_md5: str
    public_key_fingerprint_sha256: str

    @property
    def has_ssh_representation(self) -> bool:
        return bool(self.public_key_openssh)


def public_key_der(public_key: CryptoPublicKey) -> bytes:
    """DER-encoded SubjectPublicKeyInfo."""
    try:
        return public_key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    except (ValueError, TypeError) as exc:
        msg = f"failed to marshal public key: {exc}"
        raise EncodingError(msg, field="public_key_pem") from exc


def public_key_id(public_key: CryptoPublicKey) -> str:
    """Stable identifier for a key: hex SHA-1 over the PKIX public key DER."""
    return hashlib.sha1(public_key_der(public_key)).hexdigest()


def fingerprint_md5(wire: bytes) -> str:
    """Legacy colon-separated hex MD5 fingerprint, as printed by ``ssh-keygen -E md5``."""
    digest = hashlib.md5(wire, usedforsecurity=False).hexdigest()
    return ":".join(digest[i : i + 2] for i in range(0, len(digest), 2))


def fingerprint_sha256(wire: bytes) -> str:
    """``SHA256:`` prefixed, unpadded base64 fingerprint."""
    digest = hashlib.sha256(wire).digest()
    return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")


def _openssh_line(public_key: CryptoPublicKey) -> bytes | None:
    try:
        return public_key.public_bytes(
            encoding=serialization.Encoding.OpenSSH,
            format=serialization.PublicFormat.OpenSSH,
        )
    except ValueError:
        return None


def export_public_key_artifacts(private_key: PrivateKey | object) -> PublicKeyArtifacts:
    """
    Derive the public key of ``private_key`` and encode it.

    Raises:
        UnsupportedKeyTypeError: If no public key can be derived
        EncodingError: If the public key cannot be marshaled to DER
    """
    public_key = derive_public_key(private_key)
    public_key_pem = encode_pem(PEMPreamble.PUBLIC_KEY, public_key_der(public_key))

    authorized_key = _openssh_line(public_key)
    if authorized_key is None:
        logger.info("Public key has no SSH representation; leaving SSH fields empty")
        return PublicKeyArtifacts(
            public_key_pem=public_key_pem,
            public_key_openssh="",
            public_key_fingerprint_md5="",
            public_key_fingerprint_sha256="",
        )

    wire = base64.b64decode(authorized_key.split(b" ")[1])
    return PublicKeyArtifacts(
        public_key_pem=public_key_pem,
        public_key_openssh=authorized_key.decode("ascii") + "\n",
        public_key_fingerprint_md5=fingerprint_md5(wire),
        public_key_fingerprint_sha256=fingerprint_sha256(wire),
    )


@dataclass(frozen=True)
class PublicKeyInfo:
    """Result of extracting the public key from an encoded private key."""

    algorithm: Algorithm
    id: str
    artifacts: PublicKeyArtifacts


def _public_key_info(private_key: PrivateKey) -> PublicKeyInfo:
    return PublicKeyInfo(
        algorithm=private_key.algorithm,
        id=public_key_id(private_key.public_key()),
        artifacts=export_public_key_artifacts(private_key),
    )


def public_key_from_private_key_pem(data: bytes | str) -> PublicKeyInfo:
    private_key, _ = parse_private_key_pem(data)
    return _public_key_info(private_key)


def public_key_from_private_key_openssh(data: bytes | str) -> PublicKeyInfo:
    private_key, _ = parse_private_key_openssh_pem(data)
    return _public_key_info(private_key)
