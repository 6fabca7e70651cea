import json

import pytest

from talkmate import config as config_mod
from talkmate import crypto
from talkmate.config import AppConfig, GroqConfig
from talkmate.i18n import t


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config_mod, "_config_dir", tmp_path)
    monkeypatch.setattr(config_mod, "_config_file", tmp_path / "config.json")
    monkeypatch.setattr(crypto, "_fernets", {})
    for var in ("GROQ_API_KEY", "AI_TEMPERATURE", "TALKMATE_ADMIN_TOKEN", "TALKMATE_ADMIN_IDS"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


def test_secrets_are_encrypted_at_rest(data_dir):
    config_mod.save_config(AppConfig(groq=GroqConfig(api_key="gsk_test")))

    raw = json.loads((data_dir / "config.json").read_text(encoding="utf-8"))
    assert raw["groq"]["api_key"].startswith("ENC:")
    assert config_mod.load_config().groq.api_key == "gsk_test"


def test_plaintext_config_is_migrated(data_dir):
    (data_dir / "config.json").write_text(json.dumps({"admin": {"token": "plain"}}), encoding="utf-8")
    assert config_mod.load_config().admin.token == "plain"
    raw = json.loads((data_dir / "config.json").read_text(encoding="utf-8"))
    assert raw["admin"]["token"].startswith("ENC:")


def test_env_overrides(data_dir, monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "from-env")
    monkeypatch.setenv("AI_TEMPERATURE", "0.2")
    monkeypatch.setenv("TALKMATE_ADMIN_IDS", "1, 2,")
    cfg = config_mod.load_config()
    assert cfg.groq.api_key == "from-env"
    assert cfg.groq.temperature == 0.2
    assert cfg.admin.chat_ids == ["1", "2"]


def test_translation_falls_back_to_english():
    assert t("help_text", "es") == t("help_text", "en")
    assert t("lang_set", "es", name="Spanish") == "Idioma cambiado a Spanish."
    assert t("no_such_key", "fa") == "no_such_key"


def test_key_file_lives_in_data_dir(data_dir):
    token = crypto.encrypt_value("secret")
    assert crypto.is_encrypted(token)
    assert (data_dir / crypto.KEY_FILENAME).exists()
    assert crypto.decrypt_value(token) == "secret"
    assert crypto.encrypt_value(token) == token


def test_undecryptable_secret_reads_empty(data_dir):
    token = crypto.encrypt_value("secret")
    (data_dir / crypto.KEY_FILENAME).unlink()
    crypto._fernets.clear()
    assert crypto.decrypt_value(token) == ""
