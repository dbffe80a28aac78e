"""Tests for source text hashing."""

from flashgen.hashing import content_hash


def test_hash_is_deterministic(source_text):
    assert content_hash(source_text) == content_hash(source_text)


def test_one_character_changes_hash(source_text):
    changed = source_text[:-1] + ("a" if source_text[-1] != "a" else "b")

    assert content_hash(changed) != content_hash(source_text)


def test_hash_format():
    digest = content_hash("hello")

    assert len(digest) == 64
    assert digest == "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"


def test_lone_surrogate_has_digest():
    digest = content_hash("a" * 10 + "\ud800")

    assert len(digest) == 64
    assert digest != content_hash("a" * 10)
