"""
Authentication expressions

An :class:`AuthGroup` names the credential schemes a request must satisfy,
either a single scheme or AND/OR combinations of other groups. The tree is
immutable; evaluation against a registry of credential providers returns an
:class:`AuthResult` holding either the interceptors to apply or the reasons
no combination was satisfied.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Tuple, TYPE_CHECKING

from ..exceptions import AuthenticationError, ValidationError

if TYPE_CHECKING:
    from .credentials import CredentialProvider
    from ..http_clients.types import HttpInterceptor

logger = logging.getLogger(__name__)


class AuthKind(Enum):
    """Kinds of authentication expression"""
    SINGLE = "single"
    AND = "and"
    OR = "or"


@dataclass(frozen=True)
class AuthResult:
    """
    Outcome of evaluating an authentication expression
    
    Attributes:
        interceptors: Authenticator interceptors to apply, in evaluation order
        errors: Failure messages, empty on success
    """
    interceptors: Tuple['HttpInterceptor', ...] = ()
    errors: Tuple[str, ...] = ()
    success: bool = True
    
    @property
    def error_message(self) -> str:
        """Every failure on its own line prefixed by '-> '"""
        return "\n".join(f"-> {message}" for message in self.errors)
    
    def raise_for_failure(self) -> None:
        """Raise AuthenticationError if evaluation failed"""
        if not self.success:
            raise AuthenticationError(self.error_message, details={'errors': list(self.errors)})


@dataclass(frozen=True)
class AuthGroup:
    """
    Immutable authentication expression
    
    Build instances with :meth:`single`, :meth:`and_` and :meth:`or_`.
    """
    kind: AuthKind
    key: str = ""
    children: Tuple['AuthGroup', ...] = field(default_factory=tuple)
    
    def __post_init__(self):
        if self.kind is AuthKind.SINGLE:
            if not self.key:
                raise ValidationError("Single authentication requires a key")
        elif len(self.children) < 2:
            raise ValidationError(f"{self.kind.value.upper()} authentication requires at least two groups")
    
    @classmethod
    def single(cls, key: str) -> 'AuthGroup':
        """Require the credential registered under ``key``"""
        return cls(AuthKind.SINGLE, key=key)
    
    @classmethod
    def and_(cls, first: 'AuthGroup', second: 'AuthGroup', *more: 'AuthGroup') -> 'AuthGroup':
        """Require every given group"""
        return cls(AuthKind.AND, children=(first, second) + tuple(more))
    
    @classmethod
    def or_(cls, first: 'AuthGroup', second: 'AuthGroup', *more: 'AuthGroup') -> 'AuthGroup':
        """Require the first satisfiable group, tried in order"""
        return cls(AuthKind.OR, children=(first, second) + tuple(more))
    
    def keys(self) -> List[str]:
        """Credential keys referenced by this expression, depth first"""
        if self.kind is AuthKind.SINGLE:
            return [self.key]
        return [key for child in self.children for key in child.keys()]
    
    def evaluate(self, registry: Mapping[str, 'CredentialProvider']) -> AuthResult:
        """
        Evaluate this expression against ``registry``
        
        Args:
            registry: Credential providers keyed by scheme name
            
        Returns:
            AuthResult with the interceptors to apply or the failure messages
        """
        if self.kind is AuthKind.SINGLE:
            return self._evaluate_single(registry)
        if self.kind is AuthKind.AND:
            return self._evaluate_and(registry)
        return self._evaluate_or(registry)
    
    def _evaluate_single(self, registry: Mapping[str, 'CredentialProvider']) -> AuthResult:
        provider = registry.get(self.key)
        if provider is None:
            return AuthResult(errors=(f"{self.key} is undefined!",), success=False)
        if not provider.is_valid():
            message = provider.error_message()
            return AuthResult(errors=(message,) if message else (), success=False)
        return AuthResult(interceptors=(provider.authenticator(),))
    
    def _evaluate_and(self, registry: Mapping[str, 'CredentialProvider']) -> AuthResult:
        interceptors: List['HttpInterceptor'] = []
        errors: List[str] = []
        success = True
        for child in self.children:
            result = child.evaluate(registry)
            interceptors.extend(result.interceptors)
            errors.extend(result.errors)
            success = success and result.success
        if not success:
            return AuthResult(errors=tuple(errors), success=False)
        return AuthResult(interceptors=tuple(interceptors))
    
    def _evaluate_or(self, registry: Mapping[str, 'CredentialProvider']) -> AuthResult:
        errors: List[str] = []
        for child in self.children:
            result = child.evaluate(registry)
            if result.success:
                return result
            errors.extend(result.errors)
        
        if not errors:
            keys = self.keys()
            listed = " or ".join(keys) if len(keys) < 3 else ", ".join(keys[:-1]) + f" or {keys[-1]}"
            errors.append(f"Expected either {listed}. Got neither.")
        logger.debug(f"No alternative of {self.keys()} was satisfied")
        return AuthResult(errors=tuple(errors), success=False)


def validate_auth(group: AuthGroup, registry: Dict[str, 'CredentialProvider']) -> List['HttpInterceptor']:
    """
    Evaluate ``group`` and return its interceptors
    
    Raises:
        AuthenticationError: If no combination of credentials is satisfied
    """
    result = group.evaluate(registry)
    result.raise_for_failure()
    return list(result.interceptors)
