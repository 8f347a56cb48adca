"""
Security package for client certificate handling and transport configuration.
"""
from .models import CertificateBundle, CertificateInfo
from .credential_service import CredentialService
from .transport_service import TransportClient, TransportService

__all__ = [
    'CertificateBundle',
    'CertificateInfo',
    'CredentialService',
    'TransportClient',
    'TransportService'
]
