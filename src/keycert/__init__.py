"""
keycert - private key and X.509 certificate engine.

Generates and parses RSA, ECDSA and ED25519 keys, exports them as PEM and
OpenSSH material, issues self-signed and CA-signed certificates and
decides when an issued certificate is due for renewal.
"""

from keycert.algorithms import Algorithm, ECDSACurve, KeyGenParams, PrivateKey, generate_private_key
from keycert.certificate import (
    create_certificate_request,
    issue_certificate,
    issue_certificate_from_request,
)
from keycert.clock import FixedClock, utc_now
from keycert.codec import (
    PrivateKeyArtifacts,
    export_private_key,
    parse_private_key_openssh_pem,
    parse_private_key_pem,
)
from keycert.config import EngineSettings, get_settings
from keycert.engine import KeyCertEngine, KeyMaterial, generate_key_material, load_key_material
from keycert.exceptions import (
    ConfigurationError,
    DecodeError,
    EncodingError,
    KeyCertError,
    KeyGenerationError,
    ParseError,
    SigningError,
    UnknownAlgorithmError,
    UnknownPreambleError,
    UnsupportedKeyTypeError,
    ValidationError,
)
from keycert.expiry import CertificateState, RenewalPolicy, certificate_state, is_current, ready_for_renewal
from keycert.models import CertificateSpec, IssuedCertificate, Subject
from keycert.public_key import (
    PublicKeyArtifacts,
    export_public_key_artifacts,
    public_key_from_private_key_openssh,
    public_key_from_private_key_pem,
)
from keycert.usages import ExtKeyUsage, KeyUsage, parse_allowed_uses

__version__ = "0.1.0"

__all__ = [
    "Algorithm",
    "CertificateSpec",
    "CertificateState",
    "ConfigurationError",
    "DecodeError",
    "ECDSACurve",
    "EncodingError",
    "EngineSettings",
    "ExtKeyUsage",
    "FixedClock",
    "IssuedCertificate",
    "KeyCertEngine",
    "KeyCertError",
    "KeyGenParams",
    "KeyGenerationError",
    "KeyMaterial",
    "KeyUsage",
    "ParseError",
    "PrivateKey",
    "PrivateKeyArtifacts",
    "PublicKeyArtifacts",
    "RenewalPolicy",
    "SigningError",
    "Subject",
    "UnknownAlgorithmError",
    "UnknownPreambleError",
    "UnsupportedKeyTypeError",
    "ValidationError",
    "certificate_state",
    "create_certificate_request",
    "export_private_key",
    "export_public_key_artifacts",
    "generate_key_material",
    "generate_private_key",
    "get_settings",
    "is_current",
    "issue_certificate",
    "issue_certificate_from_request",
    "load_key_material",
    "parse_allowed_uses",
    "parse_private_key_openssh_pem",
    "parse_private_key_pem",
    "public_key_from_private_key_openssh",
    "public_key_from_private_key_pem",
    "ready_for_renewal",
    "utc_now",
]
