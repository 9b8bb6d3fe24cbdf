"""Tests for the content hash used as the cache validity key."""

from hybrid_rag.utils.hashing import content_hash, text_digest


class TestContentHash:
    """Tests for the 32-bit rolling hash."""

    def test_known_values(self):
        assert content_hash("") == "0"
        assert content_hash("a") == "2p"
        assert content_hash("hello") == "1n1e4y"

    def test_signed_overflow_uses_absolute_value(self):
        # Wraps to the minimum 32-bit integer
        assert content_hash("polygenelubricants") == "zik0zk"

    def test_deterministic(self):
        text = "Some document text.\n\nWith paragraphs."
        assert content_hash(text) == content_hash(text)
        assert content_hash(text) != content_hash(text + " More.")

    def test_only_prefix_is_hashed(self):
        base = "x" * 10000
        assert content_hash(base + "tail one") == content_hash(base + "tail two")

    def test_prefix_length_configurable(self):
        assert content_hash("abcdef", prefix_chars=3) == content_hash("abc")
        base = "x" * 10000
        assert content_hash(base + "one", prefix_chars=None) != content_hash(base + "two", prefix_chars=None)

    def test_collisions_possible(self):
        assert content_hash("Aa") == content_hash("BB")


def test_text_digest_is_sha256():
    assert text_digest("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


class TestUtf16CodeUnits:
    """Characters outside the BMP hash as surrogate pairs."""

    def test_astral_character_hashes_both_surrogates(self):
        # U+1F600 is 0xD83D 0xDE00 in UTF-16
        assert content_hash("\U0001F600") == "11zz7"

    def test_prefix_counts_code_units(self):
        assert content_hash("\U0001F600", prefix_chars=1) == "16pp"
        assert content_hash("\U0001F600tail", prefix_chars=2) == content_hash("\U0001F600")
