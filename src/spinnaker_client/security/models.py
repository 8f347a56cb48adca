"""
Security models for client certificate management.
"""
from dataclasses import dataclass
from typing import Optional
from datetime import datetime


@dataclass(frozen=True)
class CertificateInfo:
    """Information about a certificate."""
    subject: str
    issuer: str
    serial_number: str
    not_before: datetime
    not_after: datetime
    is_valid: bool
    fingerprint: str


@dataclass(frozen=True)
class CertificateBundle:
    """A client certificate and the private key that belongs to it."""
    cert_pem: bytes
    key_pem: bytes
    source: str  # content, path
    info: CertificateInfo
    cert_path: Optional[str] = None
    key_path: Optional[str] = None

    def __repr__(self):
        # Never echo key material
        return (f"CertificateBundle(source={self.source!r}, subject={self.info.subject!r}, "
                f"cert_path={self.cert_path!r})")
