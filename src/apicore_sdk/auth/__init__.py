"""
Authentication expressions and credential providers
"""

from .auth_group import AuthGroup, AuthKind, AuthResult, validate_auth
from .credentials import (
    CredentialProvider,
    ApiKeyHeaderCredentials,
    ApiKeyQueryCredentials,
    BasicAuthCredentials,
    BearerTokenCredentials,
)

__all__ = [
    'AuthGroup',
    'AuthKind',
    'AuthResult',
    'validate_auth',
    'CredentialProvider',
    'ApiKeyHeaderCredentials',
    'ApiKeyQueryCredentials',
    'BasicAuthCredentials',
    'BearerTokenCredentials',
]
