"""Content hashing for stable document and text-unit identifiers."""

import hashlib

HASH_SEED = 5381
HASH_MULTIPLIER = 33
UINT32_MASK = 0xFFFFFFFF
DEFAULT_DOC_ID_LENGTH = 12
MIN_DOC_ID_LENGTH = 8
MAX_DOC_ID_LENGTH = 64


def hash_string(text: str) -> str:
    """Hash text with 32-bit djb2-xor over its UTF-16 code units.

    Persisted identifiers depend on this exact value, so the arithmetic
    wraps at 32 bits and non-BMP characters contribute both surrogates.

    Args:
        text: Text to hash

    Returns:
        Lowercase hex digest without zero padding
    """
    value = HASH_SEED
    encoded = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        value = ((value * HASH_MULTIPLIER) & UINT32_MASK) ^ code_unit
    return format(value, "x")


def document_id(content: bytes, length: int = DEFAULT_DOC_ID_LENGTH) -> str:
    """Derive a document id from the first hex characters of SHA-256."""
    if length < MIN_DOC_ID_LENGTH:
        raise ValueError(f"document id length must be >= {MIN_DOC_ID_LENGTH}, got {length}")
    return hashlib.sha256(content).hexdigest()[:length]


def unit_id(doc_id: str, page_number: int, source: str) -> str:
    """Build the `{docId}:p{pageNumber}:{hash}` identifier of a text unit."""
    return f"{doc_id}:p{page_number}:{hash_string(source)}"
