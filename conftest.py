import sys
import os
import tempfile
from unittest.mock import MagicMock

# --- 1. GLOBAL MOCKS (The "Air Gap") ---
# We force Python to use Fake objects for Vertex AI.
# This prevents the app from trying to connect to real servers during import.

mock_vertex = MagicMock()

sys.modules["langchain_google_vertexai"] = mock_vertex

# --- 2. ENVIRONMENT VARIABLES ---
# Set dummy values so os.environ.get() doesn't fail
os.environ["GCP_PROJECT_ID"] = "test-project"
os.environ["SAVE_DIR"] = tempfile.mkdtemp(prefix="wildlands-test-")
os.environ["MODEL_FALLBACK_ORDER"] = "model-a,model-b"

# --- 3. PYTEST HOOKS ---
import pytest

@pytest.fixture(autouse=True)
def mock_settings():
    """
    Automatically runs before every test.
    Ensures no real network calls slip through.
    """
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("GCP_PROJECT_ID", "test-project")
        yield
