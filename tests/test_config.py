from obs_lab.config import Settings, get_settings


def test_defaults() -> None:
    settings = Settings()
    assert settings.port == 3000
    assert settings.service_name == "obs-lab"
    assert settings.slow_delay_ms == 700
    assert settings.log_retention_days == 14
    assert settings.log_max_bytes == 20 * 1024 * 1024
    assert settings.correlation_id_header == "X-Request-ID"


def test_port_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "8081")
    get_settings.cache_clear()
    assert get_settings().port == 8081


def test_importing_main_builds_no_app(tmp_path, monkeypatch) -> None:
    import importlib

    import obs_lab.main

    monkeypatch.chdir(tmp_path)
    module = importlib.reload(obs_lab.main)
    assert not hasattr(module, "app")
    assert not (tmp_path / "logs").exists()
