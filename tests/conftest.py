"""
Shared fixtures for the detection pipeline and API tests.
"""

import pytest

from core.species_detection import SpeciesDetector
from fakes import FISH_ROWS, FakeClassifier, FakeDirectorySource


@pytest.fixture
def fish_source():
    return FakeDirectorySource(FISH_ROWS)


@pytest.fixture
def make_detector():
    def _make(source=None, classifier=None):
        return SpeciesDetector(
            source if source is not None else FakeDirectorySource(FISH_ROWS),
            classifier if classifier is not None else FakeClassifier({"primary": {"species": "Thon rouge", "confidence": 90}}),
        )
    return _make
