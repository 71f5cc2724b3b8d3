"""
Key usage and extended key usage vocabularies.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from cryptography import x509
from cryptography.x509.oid import ExtendedKeyUsageOID, ObjectIdentifier

from keycert.exceptions import ValidationError


class KeyUsage(str, Enum):
    """Bits of the X.509 KeyUsage extension."""

    DIGITAL_SIGNATURE = "digital_signature"
    CONTENT_COMMITMENT = "content_commitment"
    KEY_ENCIPHERMENT = "key_encipherment"
    DATA_ENCIPHERMENT = "data_encipherment"
    KEY_AGREEMENT = "key_agreement"
    CERT_SIGNING = "cert_signing"
    CRL_SIGNING = "crl_signing"
    ENCIPHER_ONLY = "encipher_only"
    DECIPHER_ONLY = "decipher_only"

    def __str__(self) -> str:
        return self.value


class ExtKeyUsage(str, Enum):
    """Purposes of the X.509 ExtendedKeyUsage extension."""

    ANY_EXTENDED = "any_extended"
    SERVER_AUTH = "server_auth"
    CLIENT_AUTH = "client_auth"
    CODE_SIGNING = "code_signing"
    EMAIL_PROTECTION = "email_protection"
    IPSEC_END_SYSTEM = "ipsec_end_system"
    IPSEC_TUNNEL = "ipsec_tunnel"
    IPSEC_USER = "ipsec_user"
    TIMESTAMPING = "timestamping"
    OCSP_SIGNING = "ocsp_signing"
    MICROSOFT_SERVER_GATED_CRYPTO = "microsoft_server_gated_crypto"
    NETSCAPE_SERVER_GATED_CRYPTO = "netscape_server_gated_crypto"
    MICROSOFT_COMMERCIAL_CODE_SIGNING = "microsoft_commercial_code_signing"
    MICROSOFT_KERNEL_CODE_SIGNING = "microsoft_kernel_code_signing"

    def __str__(self) -> str:
        return self.value

    @property
    def oid(self) -> ObjectIdentifier:
        return _EXT_KEY_USAGE_OIDS[self]

    @classmethod
    def from_oid(cls, oid: ObjectIdentifier) -> ExtKeyUsage | None:
        for usage, known in _EXT_KEY_USAGE_OIDS.items():
            if known == oid:
                return usage
        return None


_EXT_KEY_USAGE_OIDS: dict[ExtKeyUsage, ObjectIdentifier] = {
    ExtKeyUsage.ANY_EXTENDED: ExtendedKeyUsageOID.ANY_EXTENDED_KEY_USAGE,
    ExtKeyUsage.SERVER_AUTH: ExtendedKeyUsageOID.SERVER_AUTH,
    ExtKeyUsage.CLIENT_AUTH: ExtendedKeyUsageOID.CLIENT_AUTH,
    ExtKeyUsage.CODE_SIGNING: ExtendedKeyUsageOID.CODE_SIGNING,
    ExtKeyUsage.EMAIL_PROTECTION: ExtendedKeyUsageOID.EMAIL_PROTECTION,
    ExtKeyUsage.IPSEC_END_SYSTEM: ObjectIdentifier("1.3.6.1.5.5.7.3.5"),
    ExtKeyUsage.IPSEC_TUNNEL: ObjectIdentifier("1.3.6.1.5.5.7.3.6"),
    ExtKeyUsage.IPSEC_USER: ObjectIdentifier("1.3.6.1.5.5.7.3.7"),
    ExtKeyUsage.TIMESTAMPING: ExtendedKeyUsageOID.TIME_STAMPING,
    ExtKeyUsage.OCSP_SIGNING: ExtendedKeyUsageOID.OCSP_SIGNING,
    ExtKeyUsage.MICROSOFT_SERVER_GATED_CRYPTO: ObjectIdentifier("1.3.6.1.4.1.311.10.3.3"),
    ExtKeyUsage.NETSCAPE_SERVER_GATED_CRYPTO: ObjectIdentifier("2.16.840.1.113730.4.1"),
    ExtKeyUsage.MICROSOFT_COMMERCIAL_CODE_SIGNING: ObjectIdentifier("1.3.6.1.4.1.311.2.1.22"),
    ExtKeyUsage.MICROSOFT_KERNEL_CODE_SIGNING: ObjectIdentifier("1.3.6.1.4.1.311.61.1.1"),
}

# KeyUsage member -> keyword of cryptography.x509.KeyUsage
_KEY_USAGE_FLAGS: dict[KeyUsage, str] = {
    KeyUsage.DIGITAL_SIGNATURE: "digital_signature",
    KeyUsage.CONTENT_COMMITMENT: "content_commitment",
    KeyUsage.KEY_ENCIPHERMENT: "key_encipherment",
    KeyUsage.DATA_ENCIPHERMENT: "data_encipherment",
    KeyUsage.KEY_AGREEMENT: "key_agreement",
    KeyUsage.CERT_SIGNING: "key_cert_sign",
    KeyUsage.CRL_SIGNING: "crl_sign",
    KeyUsage.ENCIPHER_ONLY: "encipher_only",
    KeyUsage.DECIPHER_ONLY: "decipher_only",
}


def key_usage_extension(usages: Iterable[KeyUsage]) -> x509.KeyUsage:
    """
    Build the KeyUsage extension value.

    Raises ``ValueError`` for combinations X.509 forbids (encipher/decipher
    only without key agreement).
    """
    enabled = {_KEY_USAGE_FLAGS[usage] for usage in usages}
    return x509.KeyUsage(**{flag: flag in enabled for flag in _KEY_USAGE_FLAGS.values()})


def key_usages_from_extension(extension: x509.KeyUsage) -> tuple[KeyUsage, ...]:
    """Read the set bits of a KeyUsage extension back into :class:`KeyUsage` members, in bit order."""
    usages = []
    for usage, flag in _KEY_USAGE_FLAGS.items():
        # encipher_only / decipher_only raise unless key_agreement is set
        if flag in ("encipher_only", "decipher_only") and not extension.key_agreement:
            continue
        if getattr(extension, flag):
            usages.append(usage)
    return tuple(usages)


def _dedupe(values: Iterable) -> tuple:
    return tuple(dict.fromkeys(values))


def normalize_key_usages(values: Iterable[KeyUsage | str]) -> tuple[KeyUsage, ...]:
    values = list(values)
    try:
        return _dedupe(KeyUsage(value) for value in values)
    except ValueError as exc:
        raise ValidationError.unsupported_value(
            "key_usages", _first_unknown(values, KeyUsage), [u.value for u in KeyUsage]
        ) from exc


def normalize_ext_key_usages(values: Iterable[ExtKeyUsage | str]) -> tuple[ExtKeyUsage, ...]:
    values = list(values)
    try:
        return _dedupe(ExtKeyUsage(value) for value in values)
    except ValueError as exc:
        raise ValidationError.unsupported_value(
            "ext_key_usages", _first_unknown(values, ExtKeyUsage), [u.value for u in ExtKeyUsage]
        ) from exc


def _first_unknown(values: Iterable, enum_cls: type[Enum]) -> object:
    known = {member.value for member in enum_cls}
    return next((value for value in values if value not in known), None)


def parse_allowed_uses(names: Iterable[str]) -> tuple[tuple[KeyUsage, ...], tuple[ExtKeyUsage, ...]]:
    """
    Split a flat list of usage names into key usages and extended key usages.

    Raises:
        ValidationError: If a name belongs to neither vocabulary
    """
    key_usages: list[KeyUsage] = []
    ext_key_usages: list[ExtKeyUsage] = []
    key_usage_names = {u.value for u in KeyUsage}
    ext_key_usage_names = {u.value for u in ExtKeyUsage}

    for name in names:
        if name in key_usage_names:
            key_usages.append(KeyUsage(name))
        elif name in ext_key_usage_names:
            ext_key_usages.append(ExtKeyUsage(name))
        else:
            supported = sorted(key_usage_names | ext_key_usage_names)
            raise ValidationError.unsupported_value("allowed_uses", name, supported)

    return _dedupe(key_usages), _dedupe(ext_key_usages)
