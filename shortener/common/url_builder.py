"""URL building utilities for the shortener."""


def build_short_url(code: str, base_url: str) -> str:
    """Build complete short URL.
    
    Args:
        code: The short code
        base_url: Base URL (e.g., http://localhost:8080)
        
    Returns:
        Complete short URL
    """
    return f"{base_url.rstrip('/')}/{code}"
