import logging
from pathlib import Path

import pytest

from dpstore.common.config import Config


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in [
        "DPSTORE_SERVER_HOST",
        "DPSTORE_SERVER_PORT",
        "DPSTORE_DATA_DIR",
        "DPSTORE_LICENSE_FILE",
        "DPSTORE_CATALOG_FILE",
        "DPSTORE_STATIC_DIR",
        "DPSTORE_CURRENCY",
        "STRIPE_SECRET_KEY",
        "STRIPE_WEBHOOK_SECRET",
        "LOG_LEVEL",
    ]:
        monkeypatch.delenv(name, raising=False)


@pytest.mark.usefixtures("clean_env")
def test_config_defaults() -> None:
    config = Config()
    assert config.SERVER_HOST == "127.0.0.1"
    assert config.SERVER_PORT == 4242  # noqa: PLR2004
    assert config.CURRENCY == "eur"
    assert config.STRIPE_SECRET_KEY is None
    assert config.STRIPE_WEBHOOK_SECRET is None
    assert config.CATALOG_FILE_PATH is None
    assert config.STATIC_DIR is None
    assert config.LICENSE_TERM_YEARS == 1
    assert config.LOG_LEVEL == logging.INFO
    assert "{CHECKOUT_SESSION_ID}" in config.SUCCESS_URL


@pytest.mark.usefixtures("clean_env")
def test_config_paths() -> None:
    base_dir = Path(__file__).parent.parent / "dpstore"
    config = Config()
    assert config.BASE_DIR == base_dir
    assert config.DATA_DIR == base_dir / "data"
    assert config.LICENSE_FILE_PATH == base_dir / "data" / "licenses.csv"


@pytest.mark.usefixtures("clean_env")
def test_config_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DPSTORE_SERVER_PORT", "9000")
    monkeypatch.setenv("DPSTORE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("DPSTORE_CATALOG_FILE", str(tmp_path / "catalog.json"))
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_x")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = Config()
    assert config.SERVER_PORT == 9000  # noqa: PLR2004
    assert config.LICENSE_FILE_PATH == tmp_path / "licenses.csv"
    assert config.CATALOG_FILE_PATH == tmp_path / "catalog.json"
    assert config.STRIPE_WEBHOOK_SECRET == "whsec_x"
    assert config.LOG_LEVEL == logging.DEBUG


@pytest.mark.usefixtures("clean_env")
def test_config_bad_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert Config().LOG_LEVEL == logging.INFO
