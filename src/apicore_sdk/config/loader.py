"""
Configuration loading for APICore Python SDK

Builds the HTTP, retry, logging and credential settings of a client from a
JSON document or a plain dictionary.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..auth.credentials import (
    ApiKeyHeaderCredentials,
    ApiKeyQueryCredentials,
    BasicAuthCredentials,
    BearerTokenCredentials,
    CredentialProvider,
)
from ..encoding.array_serialization import ArraySerializationOption
from ..exceptions import APICoreSDKError, ConfigError
from ..http_clients.call_builder import CallBuilderFactory, create_call_builder_factory
from ..http_clients.retryer import RetryConfiguration
from ..http_clients.transport import HttpClient, HttpConfiguration
from ..logging import (
    LoggingConfiguration,
    RequestLoggingConfiguration,
    ResponseLoggingConfiguration,
    SdkLogger,
)

logger = logging.getLogger(__name__)

CREDENTIAL_TYPES = {
    'api_key_header': ApiKeyHeaderCredentials,
    'api_key_query': ApiKeyQueryCredentials,
    'basic': BasicAuthCredentials,
    'bearer': BearerTokenCredentials,
}


@dataclass
class SdkConfig:
    """Complete client configuration"""
    http: HttpConfiguration
    logging: Optional[LoggingConfiguration] = None
    auth_providers: Dict[str, CredentialProvider] = field(default_factory=dict)


class ConfigLoader:
    """Loads and holds an :class:`SdkConfig`"""
    
    def __init__(self, config: SdkConfig):
        self.config = config
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConfigLoader':
        """Load configuration from a dictionary"""
        try:
            return cls(cls._parse_config_dict(data))
        except ConfigError:
            raise
        except APICoreSDKError as e:
            raise ConfigError(f"Invalid configuration: {e.message}", "INVALID_CONFIG")
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"Invalid configuration format: {e}", "INVALID_FORMAT")
    
    @classmethod
    def from_json(cls, json_string: str) -> 'ConfigLoader':
        """Load configuration from a JSON string"""
        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR")
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object", "INVALID_FORMAT")
        return cls.from_dict(data)
    
    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> 'ConfigLoader':
        """Load configuration from a JSON file"""
        try:
            with open(Path(file_path), 'r', encoding='utf-8') as f:
                json_string = f.read()
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}", "FILE_ERROR")
        logger.debug(f"Loaded configuration from {file_path}")
        return cls.from_json(json_string)
    
    @property
    def http_configuration(self) -> HttpConfiguration:
        return self.config.http
    
    @property
    def retry_configuration(self) -> RetryConfiguration:
        return self.config.http.retry_configuration
    
    def create_http_client(self) -> HttpClient:
        return HttpClient(self.config.http)
    
    def create_sdk_logger(self) -> Optional[SdkLogger]:
        """SDK logger for the configured logging section, None when logging is not configured"""
        if self.config.logging is None:
            return None
        return SdkLogger(self.config.logging)
    
    def create_call_builder_factory(
        self,
        http_client: Optional[HttpClient] = None,
        sdk_logger: Optional[SdkLogger] = None
    ) -> CallBuilderFactory:
        """Call builder factory wired with every configured setting, arguments override the configured ones"""
        http = self.config.http
        return create_call_builder_factory(
            http.get_base_uri,
            self.config.auth_providers,
            http_client or self.create_http_client(),
            http.retry_configuration,
            http.array_serialization_option,
            sdk_logger=sdk_logger or self.create_sdk_logger(),
            default_headers=http.default_headers,
        )
    
    @staticmethod
    def _parse_config_dict(data: Dict[str, Any]) -> SdkConfig:
        """Parse configuration dictionary into structured objects"""
        retry_data = data.get('retry', {})
        retry = RetryConfiguration(**retry_data)
        
        http_fields = {
            key: data[key]
            for key in ('timeout', 'verify_ssl', 'default_headers', 'user_agent')
            if key in data
        }
        http = HttpConfiguration(
            base_urls=dict(data.get('servers', {})),
            retry_configuration=retry,
            array_serialization_option=ArraySerializationOption(
                data.get('array_serialization', ArraySerializationOption.INDEXED.value)
            ),
            **http_fields
        )
        
        logging_config = None
        if 'logging' in data:
            logging_data = dict(data['logging'])
            request_data = logging_data.pop('request', {})
            response_data = logging_data.pop('response', {})
            logging_config = LoggingConfiguration(
                request=RequestLoggingConfiguration(**request_data),
                response=ResponseLoggingConfiguration(**response_data),
                **logging_data
            )
        
        auth_providers = {}
        for name, auth_data in data.get('auth', {}).items():
            auth_fields = dict(auth_data)
            auth_type = auth_fields.pop('type', None)
            if auth_type not in CREDENTIAL_TYPES:
                raise ConfigError(f"Unknown credential type '{auth_type}' for '{name}'", "INVALID_AUTH_TYPE")
            auth_providers[name] = CREDENTIAL_TYPES[auth_type](**auth_fields)
        
        return SdkConfig(http=http, logging=logging_config, auth_providers=auth_providers)


def load_config_from_dict(data: Dict[str, Any]) -> ConfigLoader:
    """Load configuration from a dictionary"""
    return ConfigLoader.from_dict(data)


def load_config_from_json(json_string: str) -> ConfigLoader:
    """Load configuration from a JSON string"""
    return ConfigLoader.from_json(json_string)


def load_config_from_file(file_path: Union[str, Path]) -> ConfigLoader:
    """Load configuration from a JSON file"""
    return ConfigLoader.from_file(file_path)
