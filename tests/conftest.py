import pytest


@pytest.fixture(autouse=True)
def isolate_log_env(monkeypatch):
    """Remove the ``LOG`` environment variable for the duration of a test.

    Some tests expect the default WARNING level. A level set in the
    developer's shell would otherwise leak diagnostics into captured output.
    """
    monkeypatch.delenv("LOG", raising=False)
    yield
