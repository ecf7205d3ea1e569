from __future__ import annotations

import pytest

from pagetext.utils.hashing import document_id, hash_string, unit_id


def test_hash_string_known_values() -> None:
    assert hash_string("") == "1505"
    assert hash_string("a") == "2b5c4"
    assert hash_string("ab") == "596e26"


def test_hash_string_uses_utf16_code_units() -> None:
    # U+1F600 is the surrogate pair D83D DE00
    assert hash_string("\U0001F600") == "50fe98"


def test_hash_string_wraps_at_32_bits() -> None:
    value = int(hash_string("The quick brown fox jumps over the lazy dog. " * 20), 16)
    assert 0 <= value <= 0xFFFFFFFF


def test_hash_string_is_lowercase_unpadded_hex() -> None:
    digest = hash_string("Hello, world.")
    assert digest == digest.lower()
    int(digest, 16)


def test_document_id_is_sha256_prefix() -> None:
    assert document_id(b"abc") == "ba7816bf8f01"
    assert document_id(b"abc", length=16) == "ba7816bf8f01cfea"


def test_document_id_rejects_short_length() -> None:
    with pytest.raises(ValueError):
        document_id(b"abc", length=7)


def test_unit_id_format() -> None:
    assert unit_id("ba7816bf8f01", 3, "a") == "ba7816bf8f01:p3:2b5c4"


def test_unit_id_depends_only_on_inputs() -> None:
    assert unit_id("doc", 1, "Same text.") == unit_id("doc", 1, "Same text.")
    assert unit_id("doc", 1, "Same text.") != unit_id("doc", 2, "Same text.")
    assert unit_id("doc", 1, "Same text.") != unit_id("other", 1, "Same text.")
