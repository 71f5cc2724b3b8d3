"""
PEM framing helpers.

Maps PEM block labels to :class:`PEMPreamble` values and wraps the
``asn1crypto.pem`` armor/unarmor primitives so that callers get the
engine's error taxonomy instead of bare ``ValueError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from asn1crypto import pem

from keycert.exceptions import DecodeError, UnknownPreambleError

logger = logging.getLogger(__name__)


class PEMPreamble(str, Enum):
    """Label of a PEM block, identifying the structure it carries."""

    PRIVATE_KEY_RSA = "RSA PRIVATE KEY"
    PRIVATE_KEY_EC = "EC PRIVATE KEY"
    PRIVATE_KEY_PKCS8 = "PRIVATE KEY"
    PRIVATE_KEY_OPENSSH = "OPENSSH PRIVATE KEY"
    PUBLIC_KEY = "PUBLIC KEY"
    CERTIFICATE = "CERTIFICATE"
    CERTIFICATE_REQUEST = "CERTIFICATE REQUEST"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: str) -> PEMPreamble:
        try:
            return cls(label)
        except ValueError as exc:
            msg = f"unsupported PEM preamble: {label}"
            raise UnknownPreambleError(msg) from exc


@dataclass(frozen=True)
class PEMBlock:
    """A single decoded PEM block."""

    label: str
    headers: dict[str, str]
    der: bytes

    @property
    def preamble(self) -> PEMPreamble:
        return PEMPreamble.from_label(self.label)


def _to_bytes(data: bytes | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return data


def decode_pem_block(data: bytes | str) -> PEMBlock:
    """
    Decode exactly one PEM block from ``data``.

    Anything after the first block is ignored.

    Raises:
        DecodeError: If no complete PEM block is present
    """
    raw = _to_bytes(data)
    try:
        label, headers, der = pem.unarmor(raw)
    except ValueError as exc:
        msg = f"failed to decode PEM block: decoded bytes 0, undecoded {len(raw)}"
        raise DecodeError(msg) from exc

    logger.debug("Decoded PEM block with label %s (%d DER bytes)", label, len(der))
    return PEMBlock(label=label, headers=dict(headers), der=der)


def encode_pem(preamble: PEMPreamble, der: bytes) -> str:
    """Armor ``der`` under the label of ``preamble``."""
    return pem.armor(preamble.value, der).decode("ascii")
