from bifrost_client.config import Settings


def test_bifrost_url_from_env(monkeypatch):
    """Bifrost URL should load from the environment, without a trailing slash."""

    monkeypatch.setenv("BIFROST_URL", "https://bifrost.example.com/")

    settings = Settings()

    assert settings.bifrost_url == "https://bifrost.example.com"
    assert settings.has_bifrost_url is True


def test_defaults(monkeypatch):
    """Unset environment falls back to testnet defaults."""

    for name in ("BIFROST_URL", "HORIZON_URL", "NETWORK", "RECOVERY_PUBLIC_KEY", "BASE_FEE"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.network == "test"
    assert settings.horizon_url == "https://horizon-testnet.stellar.org"
    assert settings.horizon_allow_http is False
    assert settings.base_fee == 100
    assert settings.has_recovery_key is False


def test_horizon_allow_http_env(monkeypatch):
    monkeypatch.setenv("HORIZON_ALLOW_HTTP", "true")

    assert Settings().horizon_allow_http is True
