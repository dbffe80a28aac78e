"""Content hashing for generation bookkeeping."""

import hashlib


def content_hash(text: str) -> str:
    """Stable SHA-256 hex digest of ``text``.

    Used to trace generations back to their source text. It plays no part
    in security or in skipping repeated requests. Lone surrogates are
    hashed as-is so every ``str`` has a digest.
    """
    return hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()
