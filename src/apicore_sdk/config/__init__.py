"""
Configuration management for APICore Python SDK
"""

from .loader import (
    ConfigLoader,
    SdkConfig,
    CREDENTIAL_TYPES,
    load_config_from_dict,
    load_config_from_json,
    load_config_from_file,
)
from ..exceptions import ConfigError

__all__ = [
    'ConfigLoader',
    'SdkConfig',
    'ConfigError',
    'CREDENTIAL_TYPES',
    'load_config_from_dict',
    'load_config_from_json',
    'load_config_from_file',
]
