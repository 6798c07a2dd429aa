from pathlib import Path

from minutes.core.config import Settings


def test_cors_origins_comma_separated(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, app://minutes")
    assert Settings().CORS_ORIGINS == ["http://localhost:3000", "app://minutes"]


def test_cors_origins_json(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", '["http://a", "http://b"]')
    assert Settings().CORS_ORIGINS == ["http://a", "http://b"]


def test_storage_paths_follow_data_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    config = Settings(DATA_DIR=tmp_path)
    assert config.uploads_dir == tmp_path / "uploads"
    assert config.database_url == f"sqlite:///{(tmp_path / 'database' / 'meetings.db').as_posix()}"


def test_explicit_database_url(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    assert Settings().database_url == "sqlite:///:memory:"


def test_defaults(monkeypatch):
    for name in ("PORT", "MAX_FILE_SIZE_MB", "AI_PROVIDER"):
        monkeypatch.delenv(name, raising=False)
    config = Settings(DATA_DIR=Path("userData"))
    assert config.PORT == 13001
    assert config.max_file_size_bytes == 500 * 1024 * 1024
    assert config.AI_PROVIDER == "ollama"
