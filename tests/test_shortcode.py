"""Tests for short code generation."""

import random

from shortener.shortcode import ShortCodeGenerator


class TestShortCodeGenerator:
    """Test short code generation."""

    def test_generate_random(self):
        """Test random code generation."""
        generator = ShortCodeGenerator()

        code = generator.generate_random()
        assert len(code) == 8
        assert generator.is_valid_format(code)

    def test_generate_random_custom_length(self):
        """Test random code with custom length."""
        generator = ShortCodeGenerator(default_length=6)

        assert len(generator.generate_random()) == 6
        assert len(generator.generate_random(length=12)) == 12

    def test_alphabet(self):
        """Codes only use a-z, A-Z and 0-9."""
        generator = ShortCodeGenerator()

        chars = set("".join(generator.generate_random() for _ in range(200)))
        assert chars <= set(ShortCodeGenerator.BASE62_CHARS)
        assert len(ShortCodeGenerator.BASE62_CHARS) == 62

    def test_consecutive_codes_differ(self):
        """Back-to-back calls do not repeat codes."""
        generator = ShortCodeGenerator()

        codes = {generator.generate_random() for _ in range(1000)}
        assert len(codes) == 1000

    def test_injected_rng_is_deterministic(self):
        """Same seed, same sequence."""
        first = ShortCodeGenerator(rng=random.Random(42))
        second = ShortCodeGenerator(rng=random.Random(42))

        assert [first.generate_random() for _ in range(5)] == [
            second.generate_random() for _ in range(5)
        ]

    def test_is_valid_format(self):
        """Test code format validation."""
        assert ShortCodeGenerator.is_valid_format("abc123")
        assert ShortCodeGenerator.is_valid_format("ABCxyz09")

        assert not ShortCodeGenerator.is_valid_format("")
        assert not ShortCodeGenerator.is_valid_format("abc-123")
        assert not ShortCodeGenerator.is_valid_format("abc 123")
        assert not ShortCodeGenerator.is_valid_format("abc/123")
