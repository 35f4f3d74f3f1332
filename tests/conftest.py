import io
import time
import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from backend.app import config
from backend.app.main import app
from backend.app.routes.predict import get_model


class StubModel:
    """Stands in for the loaded model; returns fixed scores and records inputs."""

    def __init__(self, scores=(0.8,), error=None, delay=0):
        self.scores = scores
        self.error = error
        self.delay = delay
        self.calls = []

    def predict(self, tensor):
        self.calls.append(tensor)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return np.asarray(self.scores, dtype=np.float64)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def make_image():
    def _make(fmt="PNG", size=(32, 32), color=(200, 30, 60), mode="RGB"):
        buf = io.BytesIO()
        Image.new(mode, size, color).save(buf, format=fmt)
        return buf.getvalue()
    return _make


@pytest.fixture
def make_client(upload_dir):
    def _make(model):
        app.dependency_overrides[get_model] = lambda: model
        return TestClient(app)
    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def lifespan_client(upload_dir, monkeypatch):
    """A client whose startup really loads the model in the background."""
    monkeypatch.setattr(config, "MODEL_LOAD_RETRIES", 0)
    yield lambda: TestClient(app)
    if hasattr(app.state, "model_holder"):
        del app.state.model_holder


@pytest.fixture
def stored_files(upload_dir):
    def _list():
        if not upload_dir.exists():
            return []
        return list(upload_dir.iterdir())
    return _list
