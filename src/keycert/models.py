"""
Certificate data models.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.x509.oid import NameOID

from keycert.algorithms import Algorithm
from keycert.clock import ensure_utc
from keycert.exceptions import (
    DecodeError,
    EncodingError,
    ParseError,
    UnknownAlgorithmError,
    ValidationError,
)
from keycert.pem import PEMPreamble, decode_pem_block
from keycert.usages import (
    ExtKeyUsage,
    KeyUsage,
    key_usages_from_extension,
    normalize_ext_key_usages,
    normalize_key_usages,
)

# Last instant a GeneralizedTime NotAfter can carry
MAX_NOT_AFTER = datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc)


def _strings(values: Iterable[str] | str | None) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(values)


@dataclass(frozen=True)
class Subject:
    """Distinguished name of a certificate subject. Absent fields are omitted, never defaulted."""

    common_name: str | None = None
    organization: tuple[str, ...] = ()
    organizational_unit: tuple[str, ...] = ()
    street_address: tuple[str, ...] = ()
    locality: str | None = None
    province: str | None = None
    country: str | None = None
    postal_code: str | None = None
    serial_number: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "organization", _strings(self.organization))
        object.__setattr__(self, "organizational_unit", _strings(self.organizational_unit))
        object.__setattr__(self, "street_address", _strings(self.street_address))

    def _attributes(self) -> list[tuple[str, x509.ObjectIdentifier, str]]:
        # RDN order: C, O, OU, L, ST, STREET, postalCode, serialNumber, CN
        attributes: list[tuple[str, x509.ObjectIdentifier, str]] = []
        if self.country is not None:
            attributes.append(("country", NameOID.COUNTRY_NAME, self.country))
        attributes.extend(("organization", NameOID.ORGANIZATION_NAME, v) for v in self.organization)
        attributes.extend(
            ("organizational_unit", NameOID.ORGANIZATIONAL_UNIT_NAME, v)
            for v in self.organizational_unit
        )
        if self.locality is not None:
            attributes.append(("locality", NameOID.LOCALITY_NAME, self.locality))
        if self.province is not None:
            attributes.append(("province", NameOID.STATE_OR_PROVINCE_NAME, self.province))
        attributes.extend(("street_address", NameOID.STREET_ADDRESS, v) for v in self.street_address)
        if self.postal_code is not None:
            attributes.append(("postal_code", NameOID.POSTAL_CODE, self.postal_code))
        if self.serial_number is not None:
            attributes.append(("serial_number", NameOID.SERIAL_NUMBER, self.serial_number))
        if self.common_name is not None:
            attributes.append(("common_name", NameOID.COMMON_NAME, self.common_name))
        return attributes

    def to_x509_name(self) -> x509.Name:
        """
        Encode as an X.509 name.

        Raises:
            EncodingError: If an attribute value is not encodable (e.g. a
                country code that is not two characters)
        """
        rdns = []
        for name, oid, value in self._attributes():
            try:
                rdns.append(x509.NameAttribute(oid, value))
            except (ValueError, TypeError) as exc:
                raise EncodingError(f"invalid subject {name} {value!r}: {exc}", field=f"subject.{name}") from exc
        return x509.Name(rdns)

    @classmethod
    def from_x509_name(cls, name: x509.Name) -> Subject:
        def values(oid: x509.ObjectIdentifier) -> tuple[str, ...]:
            return tuple(str(attr.value) for attr in name.get_attributes_for_oid(oid))

        def single(oid: x509.ObjectIdentifier) -> str | None:
            found = values(oid)
            return found[0] if found else None

        return cls(
            common_name=single(NameOID.COMMON_NAME),
            organization=values(NameOID.ORGANIZATION_NAME),
            organizational_unit=values(NameOID.ORGANIZATIONAL_UNIT_NAME),
            street_address=values(NameOID.STREET_ADDRESS),
            locality=single(NameOID.LOCALITY_NAME),
            province=single(NameOID.STATE_OR_PROVINCE_NAME),
            country=single(NameOID.COUNTRY_NAME),
            postal_code=single(NameOID.POSTAL_CODE),
            serial_number=single(NameOID.SERIAL_NUMBER),
        )


@dataclass(frozen=True)
class CertificateSpec:
    """
    Everything needed to issue a certificate apart from the keys and the time.

    Instances are validated on construction: negative validity or early
    renewal hours raise :class:`~keycert.exceptions.ValidationError`.
    ``early_renewal_hours >= validity_period_hours`` is accepted and makes the
    certificate due for renewal right after issuance.
    """

    validity_period_hours: int
    early_renewal_hours: int = 0
    subject: Subject = field(default_factory=Subject)
    dns_names: tuple[str, ...] = ()
    ip_addresses: tuple[str, ...] = ()
    uris: tuple[str, ...] = ()
    key_usages: tuple[KeyUsage, ...] = ()
    ext_key_usages: tuple[ExtKeyUsage, ...] = ()
    is_ca: bool = False
    set_subject_key_id: bool = False

    def __post_init__(self) -> None:
        self.validate()
        object.__setattr__(self, "dns_names", _strings(self.dns_names))
        object.__setattr__(self, "ip_addresses", _strings(self.ip_addresses))
        object.__setattr__(self, "uris", _strings(self.uris))
        object.__setattr__(self, "key_usages", normalize_key_usages(self.key_usages))
        object.__setattr__(self, "ext_key_usages", normalize_ext_key_usages(self.ext_key_usages))

    def validate(self) -> None:
        for name in ("validity_period_hours", "early_renewal_hours"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"expected {name} to be an integer, got {value!r}", field=name)
            if value < 0:
                raise ValidationError.at_least(name, 0, value)

    def not_after(self, issued_at: datetime) -> datetime:
        """
        End of the validity window for a certificate issued at ``issued_at``.

        Raises:
            ValidationError: If the window would end after :data:`MAX_NOT_AFTER`
        """
        issued_at = ensure_utc(issued_at)
        limit = (MAX_NOT_AFTER - issued_at) // timedelta(hours=1)
        if self.validity_period_hours > limit:
            raise ValidationError(
                f"expected validity_period_hours to be at most ({limit}) for a certificate "
                f"issued at {issued_at.isoformat()}, got {self.validity_period_hours}",
                field="validity_period_hours",
            )
        return issued_at + timedelta(hours=self.validity_period_hours)


@dataclass(frozen=True)
class IssuedCertificate:
    """A signed certificate together with the validity window it was issued for."""

    certificate_pem: str
    key_algorithm: Algorithm
    validity_start_time: datetime
    validity_end_time: datetime

    @property
    def certificate(self) -> x509.Certificate:
        return x509.load_pem_x509_certificate(self.certificate_pem.encode("ascii"))

    @property
    def allowed_uses(self) -> tuple[str, ...]:
        """
        Key usage and extended key usage names read back from the certificate.

        Extended key usages outside :class:`ExtKeyUsage` are skipped.
        """
        extensions = self.certificate.extensions
        names: list[str] = []
        try:
            key_usage = extensions.get_extension_for_class(x509.KeyUsage).value
        except x509.ExtensionNotFound:
            key_usage = None
        if key_usage is not None:
            names.extend(usage.value for usage in key_usages_from_extension(key_usage))
        try:
            ext_key_usage = extensions.get_extension_for_class(x509.ExtendedKeyUsage).value
        except x509.ExtensionNotFound:
            ext_key_usage = []
        for oid in ext_key_usage:
            usage = ExtKeyUsage.from_oid(oid)
            if usage is not None:
                names.append(usage.value)
        return tuple(names)

    @classmethod
    def from_pem(cls, certificate_pem: str) -> IssuedCertificate:
        """Rebuild the record from a stored certificate."""
        certificate = load_certificate_pem(certificate_pem)
        return cls(
            certificate_pem=certificate_pem,
            key_algorithm=algorithm_of_public_key(certificate.public_key()),
            validity_start_time=ensure_utc(certificate.not_valid_before_utc),
            validity_end_time=ensure_utc(certificate.not_valid_after_utc),
        )


def algorithm_of_public_key(public_key: object) -> Algorithm:
    if isinstance(public_key, rsa.RSAPublicKey):
        return Algorithm.RSA
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        return Algorithm.ECDSA
    if isinstance(public_key, ed25519.Ed25519PublicKey):
        return Algorithm.ED25519
    raise UnknownAlgorithmError(f"unsupported public key type: {type(public_key).__name__}")


def load_certificate_pem(data: bytes | str) -> x509.Certificate:
    """
    Parse a PEM encoded certificate.

    Raises:
        DecodeError: If no PEM block is found or the block is not a certificate
        ParseError: If the DER payload is not a valid certificate
    """
    block = decode_pem_block(data)
    if block.label != PEMPreamble.CERTIFICATE.value:
        raise DecodeError(f"expected a {PEMPreamble.CERTIFICATE} PEM block, got {block.label}")
    try:
        return x509.load_der_x509_certificate(block.der)
    except ValueError as exc:
        raise ParseError(f"failed to parse certificate: {exc}") from exc
