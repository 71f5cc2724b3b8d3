"""
Certificate issuance.

Builds X.509 certificates and PKCS#10 certificate requests from a
:class:`~keycert.models.CertificateSpec` and signs them with the caller's
keys. Issuance never reads the clock; ``now`` is always passed in.
"""

from __future__ import annotations

import ipaddress
import logging
from collections.abc import Sequence
from datetime import datetime
from urllib.parse import urlsplit

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization

from keycert.algorithms import Algorithm, CryptoPublicKey, ECDSACurve, PrivateKey
from keycert.clock import ensure_utc
from keycert.exceptions import DecodeError, EncodingError, ParseError, SigningError
from keycert.models import (
    CertificateSpec,
    IssuedCertificate,
    Subject,
    algorithm_of_public_key,
    load_certificate_pem,
)
from keycert.pem import PEMPreamble, decode_pem_block
from keycert.public_key import public_key_der
from keycert.usages import KeyUsage, key_usage_extension

logger = logging.getLogger(__name__)

_EC_HASHES: dict[ECDSACurve, type[hashes.HashAlgorithm]] = {
    ECDSACurve.P384: hashes.SHA384,
    ECDSACurve.P521: hashes.SHA512,
}


def signature_hash(private_key: PrivateKey) -> hashes.HashAlgorithm | None:
    """Digest used when signing with ``private_key``; None for ED25519."""
    if private_key.algorithm is Algorithm.ED25519:
        return None
    return _EC_HASHES.get(private_key.ecdsa_curve, hashes.SHA256)()


def subject_alternative_names(
    dns_names: Sequence[str], ip_addresses: Sequence[str], uris: Sequence[str]
) -> list[x509.GeneralName]:
    """
    Build SAN entries, DNS names first, then IP addresses, then URIs,
    each in input order.

    Raises:
        EncodingError: If an entry cannot be encoded
    """
    names: list[x509.GeneralName] = []
    for dns_name in dns_names:
        try:
            names.append(x509.DNSName(dns_name))
        except (ValueError, TypeError) as exc:
            raise EncodingError(f"invalid DNS name {dns_name!r}: {exc}", field="dns_names") from exc
    for address in ip_addresses:
        try:
            names.append(x509.IPAddress(ipaddress.ip_address(address)))
        except ValueError as exc:
            raise EncodingError(f"invalid IP address {address!r}", field="ip_addresses") from exc
    for uri in uris:
        try:
            urlsplit(uri)
            names.append(x509.UniformResourceIdentifier(uri))
        except (ValueError, TypeError) as exc:
            raise EncodingError(f"invalid URI {uri!r}: {exc}", field="uris") from exc
    return names


def _sign(builder, private_key: PrivateKey):
    try:
        return builder.sign(private_key.key, signature_hash(private_key))
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise SigningError(f"failed to sign with {private_key.algorithm} key: {exc}") from exc


def _build_certificate(
    spec: CertificateSpec,
    *,
    subject_name: x509.Name,
    san: list[x509.GeneralName],
    public_key: CryptoPublicKey,
    signer: PrivateKey,
    issuer_name: x509.Name,
    issuer_certificate: x509.Certificate | None,
    now: datetime,
) -> IssuedCertificate:
    not_before = ensure_utc(now).replace(microsecond=0)
    not_after = spec.not_after(not_before)

    key_usages = list(spec.key_usages)
    if spec.is_ca and KeyUsage.CERT_SIGNING not in key_usages:
        key_usages.append(KeyUsage.CERT_SIGNING)

    builder = (
        x509.CertificateBuilder()
        .subject_name(subject_name)
        .issuer_name(issuer_name)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=spec.is_ca, path_length=None), critical=True)
    )

    if key_usages:
        try:
            builder = builder.add_extension(key_usage_extension(key_usages), critical=True)
        except ValueError as exc:
            raise EncodingError(f"invalid key usage combination: {exc}", field="key_usages") from exc

    if spec.ext_key_usages:
        builder = builder.add_extension(
            x509.ExtendedKeyUsage([usage.oid for usage in spec.ext_key_usages]), critical=False
        )

    if san:
        builder = builder.add_extension(
            x509.SubjectAlternativeName(san), critical=len(subject_name) == 0
        )

    if spec.set_subject_key_id or spec.is_ca:
        builder = builder.add_extension(
            x509.SubjectKeyIdentifier.from_public_key(public_key), critical=False
        )

    if issuer_certificate is not None:
        builder = builder.add_extension(_authority_key_identifier(issuer_certificate), critical=False)

    certificate = _sign(builder, signer)
    logger.info(
        "Issued certificate serial=%x algorithm=%s ca=%s valid until %s",
        certificate.serial_number,
        algorithm_of_public_key(public_key),
        spec.is_ca,
        not_after.isoformat(),
    )
    return IssuedCertificate(
        certificate_pem=certificate.public_bytes(serialization.Encoding.PEM).decode("ascii"),
        key_algorithm=algorithm_of_public_key(public_key),
        validity_start_time=not_before,
        validity_end_time=not_after,
    )


def _authority_key_identifier(issuer_certificate: x509.Certificate) -> x509.AuthorityKeyIdentifier:
    try:
        ski = issuer_certificate.extensions.get_extension_for_class(x509.SubjectKeyIdentifier)
    except x509.ExtensionNotFound:
        return x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_certificate.public_key())
    return x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(ski.value)


def _check_issuer_pair(issuer_key: PrivateKey, issuer_certificate: x509.Certificate) -> None:
    if public_key_der(issuer_key.public_key()) != public_key_der(issuer_certificate.public_key()):
        raise SigningError(
            "provided CA private key doesn't match the CA certificate's public key",
            field="ca_private_key_pem",
        )
    try:
        constraints = issuer_certificate.extensions.get_extension_for_class(x509.BasicConstraints)
        is_ca = constraints.value.ca
    except x509.ExtensionNotFound:
        is_ca = False
    if not is_ca:
        logger.warning("Issuer certificate %s is not marked as a CA", issuer_certificate.subject.rfc4514_string())


def issue_certificate(
    spec: CertificateSpec,
    subject_key: PrivateKey,
    *,
    now: datetime,
    issuer_key: PrivateKey | None = None,
    issuer_certificate_pem: str | None = None,
) -> IssuedCertificate:
    """
    Issue a certificate for ``subject_key``.

    Without an issuer the certificate is self-signed. With ``issuer_key``
    and ``issuer_certificate_pem`` it is signed by that CA and its issuer
    name and authority key identifier come from the CA certificate.

    Args:
        spec: Subject, SANs, usages and validity of the certificate
        subject_key: Key whose public half is embedded in the certificate
        now: Issuance time, becomes NotBefore
        issuer_key: Signing key; defaults to ``subject_key``
        issuer_certificate_pem: Certificate of ``issuer_key``

    Returns:
        The signed certificate and its validity window

    Raises:
        EncodingError: If a subject or SAN field cannot be encoded
        ValidationError: If NotAfter would fall past the last encodable time
        SigningError: If signing fails or the CA key and certificate differ
    """
    subject_name = spec.subject.to_x509_name()
    san = subject_alternative_names(spec.dns_names, spec.ip_addresses, spec.uris)

    issuer_certificate = None
    issuer_name = subject_name
    if issuer_certificate_pem is not None:
        if issuer_key is None:
            raise SigningError("issuer certificate given without issuer key", field="ca_private_key_pem")
        issuer_certificate = load_certificate_pem(issuer_certificate_pem)
        _check_issuer_pair(issuer_key, issuer_certificate)
        issuer_name = issuer_certificate.subject

    return _build_certificate(
        spec,
        subject_name=subject_name,
        san=san,
        public_key=subject_key.public_key(),
        signer=issuer_key or subject_key,
        issuer_name=issuer_name,
        issuer_certificate=issuer_certificate,
        now=now,
    )


def create_certificate_request(
    private_key: PrivateKey,
    subject: Subject | None = None,
    dns_names: Sequence[str] = (),
    ip_addresses: Sequence[str] = (),
    uris: Sequence[str] = (),
) -> str:
    """
    Create a PEM encoded PKCS#10 certificate request signed with ``private_key``.

    Raises:
        EncodingError: If a subject or SAN field cannot be encoded
        SigningError: If the request cannot be signed
    """
    subject_name = (subject or Subject()).to_x509_name()
    san = subject_alternative_names(dns_names, ip_addresses, uris)

    builder = x509.CertificateSigningRequestBuilder().subject_name(subject_name)
    if san:
        builder = builder.add_extension(x509.SubjectAlternativeName(san), critical=False)

    request = _sign(builder, private_key)
    return request.public_bytes(serialization.Encoding.PEM).decode("ascii")


def load_certificate_request_pem(data: bytes | str) -> x509.CertificateSigningRequest:
    """
    Parse and verify a PEM encoded certificate request.

    Raises:
        DecodeError: If no PEM block is found or it is not a certificate request
        ParseError: If the request is malformed or its signature does not verify
    """
    block = decode_pem_block(data)
    if block.label != PEMPreamble.CERTIFICATE_REQUEST.value:
        raise DecodeError(f"expected a {PEMPreamble.CERTIFICATE_REQUEST} PEM block, got {block.label}")
    try:
        request = x509.load_der_x509_csr(block.der)
    except ValueError as exc:
        raise ParseError(f"failed to parse certificate request: {exc}") from exc
    if not request.is_signature_valid:
        raise ParseError("certificate request signature is invalid", field="cert_request_pem")
    return request


def issue_certificate_from_request(
    request_pem: bytes | str,
    spec: CertificateSpec,
    ca_key: PrivateKey,
    ca_certificate_pem: str,
    *,
    now: datetime,
) -> IssuedCertificate:
    """
    Issue a CA-signed certificate for a certificate request.

    The subject, SANs and public key come from the request; validity,
    usages, the CA flag and the subject key identifier come from ``spec``.
    """
    request = load_certificate_request_pem(request_pem)
    ca_certificate = load_certificate_pem(ca_certificate_pem)
    _check_issuer_pair(ca_key, ca_certificate)

    try:
        requested = request.extensions.get_extension_for_class(x509.SubjectAlternativeName)
        san = [
            name
            for name in requested.value
            if isinstance(name, (x509.DNSName, x509.IPAddress, x509.UniformResourceIdentifier))
        ]
    except x509.ExtensionNotFound:
        san = []

    return _build_certificate(
        spec,
        subject_name=request.subject,
        san=san,
        public_key=request.public_key(),
        signer=ca_key,
        issuer_name=ca_certificate.subject,
        issuer_certificate=ca_certificate,
        now=now,
    )
