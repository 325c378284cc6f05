import pytest


@pytest.fixture(autouse=True)
def isolated_metrics(monkeypatch, tmp_path):
    """Keep metric CSV rows written during tests out of the working tree."""
    metrics_dir = tmp_path / "metrics"
    monkeypatch.setenv("METRICS_DIR", str(metrics_dir))
    return metrics_dir
