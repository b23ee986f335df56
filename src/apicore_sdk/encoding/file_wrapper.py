"""
File payloads for multipart form fields and raw stream bodies
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import urlparse

import requests

from ..exceptions import TransportError, ValidationError

logger = logging.getLogger(__name__)

CONTENT_TYPE_HEADER = "content-type"
OCTET_STREAM_CONTENT_TYPE = "application/octet-stream"


@dataclass
class FileWrapper:
    """
    A file along with its metadata
    
    Attributes:
        file: Raw file content
        file_name: Name sent in the multipart Content-Disposition header
        file_headers: Headers describing the file (lower-cased names)
    """
    file: bytes
    file_name: str = ""
    file_headers: Dict[str, str] = field(default_factory=dict)
    
    def __post_init__(self):
        """Normalize header names to lowercase"""
        if not isinstance(self.file, (bytes, bytearray)):
            raise ValidationError("File content must be bytes")
        self.file_headers = {k.lower(): v for k, v in self.file_headers.items()}
    
    @property
    def content_type(self) -> Optional[str]:
        """Content type recorded for the file, if any"""
        return self.file_headers.get(CONTENT_TYPE_HEADER)
    
    def __str__(self) -> str:
        return f"FileWrapper[FileName={self.file_name}]"


def _is_url(file_path: str) -> bool:
    return urlparse(file_path).scheme in ("http", "https")


def get_file(file_path: str, timeout: float = 30.0) -> FileWrapper:
    """
    Load a file from a local path or an HTTP(S) URL.
    
    Args:
        file_path: Local filesystem path or http/https URL
        timeout: Download timeout in seconds for URLs
        
    Returns:
        FileWrapper: File content, base name and headers
        
    Raises:
        TransportError: If the URL cannot be fetched
        ValidationError: If the local file cannot be read
    """
    if _is_url(file_path):
        logger.debug(f"Fetching file from {file_path}")
        try:
            response = requests.get(file_path, timeout=timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Error fetching file: {e}", details={'url': file_path})
        
        file_name = os.path.basename(urlparse(file_path).path)
        return FileWrapper(
            file=response.content,
            file_name=file_name,
            file_headers=dict(response.headers),
        )
    
    try:
        with open(file_path, 'rb') as f:
            content = f.read()
    except OSError as e:
        raise ValidationError(f"Error reading file: {e}", "FILE_ERROR", {'path': file_path})
    
    return FileWrapper(
        file=content,
        file_name=os.path.basename(file_path),
        file_headers={CONTENT_TYPE_HEADER: OCTET_STREAM_CONTENT_TYPE},
    )


def get_file_with_content_type(file_path: str, content_type: str, timeout: float = 30.0) -> FileWrapper:
    """Load a file with :func:`get_file` and override its content type"""
    file_wrapper = get_file(file_path, timeout=timeout)
    file_wrapper.file_headers[CONTENT_TYPE_HEADER] = content_type
    return file_wrapper
