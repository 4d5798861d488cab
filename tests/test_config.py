from hatter import config


def test_defaults_have_no_proxy_or_locale(monkeypatch):
    monkeypatch.setattr(config, "PROXY_SERVER", None)
    monkeypatch.setattr(config, "LOCALE", None)
    monkeypatch.setattr(config, "TIMEZONE_ID", None)

    browser_config = config.get_browser_config()

    assert "proxy" not in browser_config.launch_options()
    assert "locale" not in browser_config.context_options()
    assert "timezone_id" not in browser_config.context_options()


def test_proxy_locale_and_timezone_reach_the_session(monkeypatch):
    monkeypatch.setattr(config, "PROXY_SERVER", "http://proxy.internal:8080")
    monkeypatch.setattr(config, "PROXY_USERNAME", "bob")
    monkeypatch.setattr(config, "PROXY_PASSWORD", "s3cret")
    monkeypatch.setattr(config, "PROXY_BYPASS", "localhost")
    monkeypatch.setattr(config, "LOCALE", "fr-FR")
    monkeypatch.setattr(config, "TIMEZONE_ID", "Europe/Paris")

    browser_config = config.get_browser_config()

    assert browser_config.launch_options()["proxy"] == {
        "server": "http://proxy.internal:8080",
        "username": "bob",
        "password": "s3cret",
        "bypass": "localhost",
    }
    assert browser_config.context_options()["locale"] == "fr-FR"
    assert browser_config.context_options()["timezone_id"] == "Europe/Paris"


def test_proxy_credentials_without_server_are_ignored(monkeypatch):
    monkeypatch.setattr(config, "PROXY_SERVER", None)
    monkeypatch.setattr(config, "PROXY_USERNAME", "bob")
    assert config.get_proxy_config() is None


def test_unsupported_browser_falls_back_to_chromium(monkeypatch):
    monkeypatch.setattr(config, "BROWSER_CLASS", "netscape")
    assert config.get_browser_config().browser_class == "chromium"
