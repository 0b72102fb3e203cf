import pytest

CONFIG_VARS = (
    "LINK_SCHEME",
    "LINK_HOSTS",
    "UNWRAP_REDIRECTS",
    "MAX_REDIRECT_DEPTH",
    "RESOLVER_TIMEOUT",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Unset config variables and restore them (and anything load_dotenv wrote) afterwards."""
    for name in CONFIG_VARS:
        monkeypatch.setenv(name, "unused")
        monkeypatch.delenv(name)
    return monkeypatch
