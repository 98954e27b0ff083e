"""Short code generation utilities."""

import random
import string
from typing import Optional


class ShortCodeGenerator:
    """Generate random short codes for URLs.
    
    Codes are not cryptographically random and may collide; collisions are
    resolved by the storage layer.
    """
    
    # Base62 characters (alphanumeric, case-sensitive)
    BASE62_CHARS = string.ascii_letters + string.digits  # a-zA-Z0-9
    
    def __init__(self, default_length: int = 8, rng: Optional[random.Random] = None):
        """Initialize short code generator.
        
        Args:
            default_length: Default length for generated codes
            rng: Optional random source (a fresh one is seeded otherwise)
        """
        self.default_length = default_length
        self._rng = rng or random.Random()
    
    def generate_random(self, length: Optional[int] = None) -> str:
        """Generate a random short code.
        
        Args:
            length: Length of the code (uses default if not specified)
            
        Returns:
            Random short code
        """
        length = length or self.default_length
        return ''.join(self._rng.choices(self.BASE62_CHARS, k=length))
    
    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check if code has valid format (non-empty, alphanumeric).
        
        Args:
            code: Code to validate
            
        Returns:
            True if valid format
        """
        return bool(code) and all(c in ShortCodeGenerator.BASE62_CHARS for c in code)
