"""Pytest configuration for flashgen tests."""
import sys
from pathlib import Path

import pytest

# Add project root to path so the 'flashgen' package can be imported
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

SOURCE_TEXT = (
    "Photosynthesis converts light energy into chemical energy stored in glucose. "
    * 30
)[:1500]


@pytest.fixture
def source_text():
    """1500 characters of source text."""
    return SOURCE_TEXT


def _flashcards_payload(count, front="What is photosynthesis?", back="Turning light into sugar."):
    return {
        "flashcards": [
            {"front": f"{front} {i}", "back": f"{back} {i}"} for i in range(count)
        ]
    }


@pytest.fixture
def make_payload():
    """Factory for decoded payloads with numbered cards."""
    return _flashcards_payload
