"""Validation utilities for the shortener."""

import re
from urllib.parse import urlsplit
from typing import Tuple

MAX_URI_LENGTH = 2048

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*$")

# Schemes that are meaningless without a host
HOST_SCHEMES = frozenset({"http", "https", "ftp", "ftps", "ws", "wss"})


def is_valid_uri(uri: str) -> Tuple[bool, str]:
    """Validate an absolute URI.
    
    A URI is accepted when it has a scheme and contains no whitespace.
    Network schemes such as ``http`` need a host (``scheme://host...``);
    other schemes may instead carry an opaque part, as in
    ``mailto:user@example.com`` or ``urn:isbn:0451450523``.
    
    Args:
        uri: The URI to validate
        
    Returns:
        Tuple of (is_valid, error_message)
    """
    if not uri or not isinstance(uri, str):
        return False, "URI is required"
    
    if len(uri) > MAX_URI_LENGTH:
        return False, f"URI is too long (max {MAX_URI_LENGTH} characters)"
    
    if any(c.isspace() for c in uri):
        return False, "URI must not contain whitespace"
    
    try:
        result = urlsplit(uri)
        # Accessing port validates it
        result.port
    except ValueError as e:
        return False, f"Invalid URI format: {e}"
    
    if not result.scheme or not _SCHEME_RE.match(result.scheme):
        return False, "URI must be absolute (missing scheme)"
    
    if result.netloc:
        return True, ""

    if result.scheme.lower() in HOST_SCHEMES:
        return False, "URI must have a host"

    if not result.path:
        return False, "URI has nothing after the scheme"
    
    return True, ""
