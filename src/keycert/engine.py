"""
Engine facade.

Wires key generation, the codecs, certificate issuance and the renewal
policy behind one object configured from :class:`EngineSettings`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from keycert import certificate as issuer
from keycert.algorithms import Algorithm, ECDSACurve, KeyGenParams, PrivateKey, generate_private_key
from keycert.clock import Clock, ensure_utc, utc_now
from keycert.codec import PrivateKeyArtifacts, export_private_key, parse_private_key_openssh_pem
from keycert.config import EngineSettings, get_settings
from keycert.expiry import CertificateState, RenewalPolicy, certificate_state, ready_for_renewal
from keycert.models import CertificateSpec, IssuedCertificate, Subject
from keycert.public_key import (
    PublicKeyArtifacts,
    PublicKeyInfo,
    export_public_key_artifacts,
    public_key_from_private_key_openssh,
    public_key_id,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, repr=False)
class KeyMaterial:
    """A private key with every encoding of it and of its public half."""

    private_key: PrivateKey
    private: PrivateKeyArtifacts
    public: PublicKeyArtifacts
    id: str

    @property
    def algorithm(self) -> Algorithm:
        return self.private_key.algorithm

    def __repr__(self) -> str:
        return f"KeyMaterial(algorithm={self.algorithm}, id={self.id})"


def _key_material(private_key: PrivateKey) -> KeyMaterial:
    return KeyMaterial(
        private_key=private_key,
        private=export_private_key(private_key),
        public=export_public_key_artifacts(private_key),
        id=public_key_id(private_key.public_key()),
    )


def generate_key_material(
    algorithm: Algorithm | str, params: KeyGenParams | None = None
) -> KeyMaterial:
    return _key_material(generate_private_key(algorithm, params))


def load_key_material(data: bytes | str) -> KeyMaterial:
    """
    Parse a private key from standard PEM or the OpenSSH container.

    Raises:
        DecodeError, UnknownPreambleError, ParseError, UnknownAlgorithmError
    """
    private_key, _ = parse_private_key_openssh_pem(data)
    return _key_material(private_key)


class KeyCertEngine:
    """Entry point for callers that manage keys and certificates as resources."""

    def __init__(self, settings: EngineSettings | None = None, clock: Clock = utc_now) -> None:
        self.settings = settings or get_settings()
        self.clock = clock
        self.renewal = RenewalPolicy(clock)

    def _params(self, rsa_bits: int | None, ecdsa_curve: ECDSACurve | str | None) -> KeyGenParams:
        defaults = self.settings.key_gen_params()
        return KeyGenParams(
            rsa_bits=defaults.rsa_bits if rsa_bits is None else rsa_bits,
            ecdsa_curve=ECDSACurve.parse(ecdsa_curve or defaults.ecdsa_curve),
        )

    def generate_key(
        self,
        algorithm: Algorithm | str | None = None,
        *,
        rsa_bits: int | None = None,
        ecdsa_curve: ECDSACurve | str | None = None,
    ) -> KeyMaterial:
        algorithm = Algorithm.parse(algorithm or self.settings.default_algorithm)
        material = generate_key_material(algorithm, self._params(rsa_bits, ecdsa_curve))
        logger.info("Generated key %s (%s)", material.id, material.algorithm)
        return material

    def load_key(self, private_key_pem: bytes | str) -> KeyMaterial:
        return load_key_material(private_key_pem)

    def public_key_for(self, private_key_pem: bytes | str) -> PublicKeyInfo:
        return public_key_from_private_key_openssh(private_key_pem)

    def create_certificate_request(
        self,
        private_key: KeyMaterial | PrivateKey,
        subject: Subject | None = None,
        dns_names: Sequence[str] = (),
        ip_addresses: Sequence[str] = (),
        uris: Sequence[str] = (),
    ) -> str:
        return issuer.create_certificate_request(
            _private_key(private_key), subject, dns_names, ip_addresses, uris
        )

    def self_signed_certificate(
        self, spec: CertificateSpec, private_key: KeyMaterial | PrivateKey
    ) -> IssuedCertificate:
        key = _private_key(private_key)
        return issuer.issue_certificate(spec, key, now=self.clock())

    def locally_signed_certificate(
        self,
        request_pem: bytes | str,
        spec: CertificateSpec,
        ca_key: KeyMaterial | PrivateKey,
        ca_certificate_pem: str,
    ) -> IssuedCertificate:
        return issuer.issue_certificate_from_request(
            request_pem, spec, _private_key(ca_key), ca_certificate_pem, now=self.clock()
        )

    def certificate_state(
        self, certificate: IssuedCertificate, spec: CertificateSpec, as_of: datetime | None = None
    ) -> CertificateState:
        if as_of is None:
            return self.renewal.state(certificate, spec)
        return certificate_state(certificate.validity_start_time, spec, ensure_utc(as_of))

    def ready_for_renewal(
        self, certificate: IssuedCertificate, spec: CertificateSpec, as_of: datetime | None = None
    ) -> bool:
        if as_of is None:
            return self.renewal.ready_for_renewal(certificate, spec)
        return ready_for_renewal(certificate.validity_start_time, spec, as_of)


def _private_key(key: KeyMaterial | PrivateKey) -> PrivateKey:
    if isinstance(key, KeyMaterial):
        return key.private_key
    return key
