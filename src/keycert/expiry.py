"""
Renewal policy for issued certificates.

A certificate is *current* until its renewal deadline, ``issued_at +
validity - early_renewal``. The current time is never read here; callers
pass ``as_of`` explicitly or go through :class:`RenewalPolicy`, which takes
an injectable clock.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum

from keycert.clock import Clock, ensure_utc, utc_now
from keycert.models import CertificateSpec, IssuedCertificate

logger = logging.getLogger(__name__)


class CertificateState(str, Enum):
    VALID = "valid"
    DUE_FOR_RENEWAL = "due_for_renewal"
    EXPIRED = "expired"

    def __str__(self) -> str:
        return self.value


def renewal_deadline(issued_at: datetime, spec: CertificateSpec) -> datetime:
    """
    Instant from which the certificate should be replaced.

    Raises:
        ValidationError: If the validity window ends past the last encodable NotAfter
    """
    expires_at = spec.not_after(issued_at)
    try:
        return expires_at - timedelta(hours=spec.early_renewal_hours)
    except OverflowError:
        # Deadline precedes year 1
        return datetime.min.replace(tzinfo=timezone.utc)


def is_current(issued_at: datetime, spec: CertificateSpec, as_of: datetime) -> bool:
    """True iff ``as_of`` is strictly before the renewal deadline."""
    return ensure_utc(as_of) < renewal_deadline(issued_at, spec)


def ready_for_renewal(issued_at: datetime, spec: CertificateSpec, as_of: datetime) -> bool:
    return not is_current(issued_at, spec, as_of)


def certificate_state(issued_at: datetime, spec: CertificateSpec, as_of: datetime) -> CertificateState:
    """
    Classify a certificate as of ``as_of``.

    EXPIRED once the full validity period has elapsed, DUE_FOR_RENEWAL
    between the renewal deadline and expiry, VALID before the deadline.
    """
    as_of = ensure_utc(as_of)
    if as_of >= spec.not_after(issued_at):
        return CertificateState.EXPIRED
    if is_current(issued_at, spec, as_of):
        return CertificateState.VALID
    return CertificateState.DUE_FOR_RENEWAL


class RenewalPolicy:
    """Evaluates issued certificates against a spec using an injectable clock."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    def now(self) -> datetime:
        return ensure_utc(self._clock())

    def state(self, certificate: IssuedCertificate, spec: CertificateSpec) -> CertificateState:
        state = certificate_state(certificate.validity_start_time, spec, self.now())
        logger.debug("Certificate issued at %s is %s", certificate.validity_start_time.isoformat(), state)
        return state

    def is_current(self, certificate: IssuedCertificate, spec: CertificateSpec) -> bool:
        return is_current(certificate.validity_start_time, spec, self.now())

    def ready_for_renewal(self, certificate: IssuedCertificate, spec: CertificateSpec) -> bool:
        ready = not self.is_current(certificate, spec)
        if ready:
            logger.info(
                "Certificate issued at %s passed its renewal deadline %s",
                certificate.validity_start_time.isoformat(),
                renewal_deadline(certificate.validity_start_time, spec).isoformat(),
            )
        return ready
