import pytest


@pytest.fixture(autouse=True)
def _offline_cache(tmp_path_factory, monkeypatch):
    monkeypatch.setenv("FFNN_DATA_OFFLINE", "1")
    monkeypatch.setenv("FFNN_CACHE_DIR", str(tmp_path_factory.getbasetemp() / "ffnn-cache"))
