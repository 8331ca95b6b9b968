import pytest
from helpers.fakes import RecordingRenderer


@pytest.fixture
def renderer() -> RecordingRenderer:
    """Renderer that records every series it is asked to draw."""
    return RecordingRenderer()
