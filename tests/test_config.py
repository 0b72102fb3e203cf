import pytest

from link_dispatcher.config import Config


def test_defaults(clean_env, tmp_path):
    config = Config.load(tmp_path / "missing.env")

    assert config.link_scheme == "mega"
    assert config.link_hosts == ("mega.nz", "mega.app", "mega.co.nz")
    assert config.unwrap_redirects is True
    assert config.max_redirect_depth == 3
    assert config.resolver_timeout == 10.0
    assert config.log_level == "INFO"
    assert config.validate() == []


def test_values_from_env_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "LINK_SCHEME=MegaQA\n"
        "LINK_HOSTS= staging.mega.test , , Mega.Example \n"
        "UNWRAP_REDIRECTS=no\n"
        "MAX_REDIRECT_DEPTH=5\n"
        "RESOLVER_TIMEOUT=2.5\n"
        "LOG_LEVEL=debug\n"
    )

    config = Config.load(env_file)

    assert config.link_scheme == "megaqa"
    assert config.link_hosts == ("staging.mega.test", "mega.example")
    assert config.unwrap_redirects is False
    assert config.max_redirect_depth == 5
    assert config.resolver_timeout == 2.5
    assert config.log_level == "DEBUG"


def test_environment_overrides_env_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("MAX_REDIRECT_DEPTH=5\n")
    clean_env.setenv("MAX_REDIRECT_DEPTH", "7")

    assert Config.load(env_file).max_redirect_depth == 7


@pytest.mark.parametrize(
    "name, value",
    [
        ("MAX_REDIRECT_DEPTH", "three"),
        ("RESOLVER_TIMEOUT", "soon"),
    ],
)
def test_invalid_numbers_raise(clean_env, tmp_path, name, value):
    clean_env.setenv(name, value)

    with pytest.raises(ValueError, match=name):
        Config.load(tmp_path / "missing.env")


def test_validate_reports_warnings():
    config = Config(
        link_scheme="",
        link_hosts=(),
        unwrap_redirects=True,
        max_redirect_depth=0,
        resolver_timeout=0,
        log_level="LOUD",
    )

    warnings = config.validate()

    assert len(warnings) == 5
    assert any("LINK_HOSTS" in w for w in warnings)
