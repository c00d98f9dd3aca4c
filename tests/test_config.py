from simple_rest.config import get_settings


def test_defaults_when_environment_is_unset() -> None:
    settings = get_settings()
    assert settings.version == "1.0.0"
    assert settings.backend_url == "http://localhost:8080/version"
    assert settings.port == 8080
    assert settings.metrics_max_samples is None


def test_empty_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("VERSION", "")
    monkeypatch.setenv("BACKEND", "")
    monkeypatch.setenv("PORT", "")

    settings = get_settings()
    assert settings.version == "1.0.0"
    assert settings.backend_url == "http://localhost:8080/version"
    assert settings.port == 8080


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("VERSION", "2.3.4")
    monkeypatch.setenv("BACKEND", "http://backend.internal:9000/api")
    monkeypatch.setenv("PORT", "9090")
    monkeypatch.setenv("METRICS_MAX_SAMPLES", "500")

    settings = get_settings()
    assert settings.version == "2.3.4"
    assert settings.backend_url == "http://backend.internal:9000/api"
    assert settings.port == 9090
    assert settings.metrics_max_samples == 500
