import os

from infra import env_loader as E

_KEYS = ["GROQ_API_KEY", "GROQ_KEY", "OPENAI_API_KEY", "OPENAI_KEY", "LLM_AVAILABLE"]


def _clean(monkeypatch):
    # setenv first so teardown also removes keys written by the loader
    for k in _KEYS:
        monkeypatch.setenv(k, "")
        monkeypatch.delenv(k)


def test_env_file_alias_is_normalized(tmp_path, monkeypatch):
    _clean(monkeypatch)
    env = tmp_path / ".env"
    env.write_text("GROQ_KEY=gsk_test\n", encoding="utf-8")
    assert E.ensure_api_keys_loaded([str(env)]) is True
    assert os.environ["GROQ_API_KEY"] == "gsk_test"
    assert E.is_llm_ready()
    assert E.active_provider() == "groq"


def test_existing_environment_wins(tmp_path, monkeypatch):
    _clean(monkeypatch)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
    env = tmp_path / ".env"
    env.write_text("OPENAI_API_KEY=sk-from-file\n", encoding="utf-8")
    E.ensure_api_keys_loaded([str(env)])
    assert os.environ["OPENAI_API_KEY"] == "sk-from-env"
    assert E.active_provider() == "openai"


def test_offline_without_keys(tmp_path, monkeypatch):
    _clean(monkeypatch)
    assert E.ensure_api_keys_loaded([str(tmp_path / "missing.env")]) is False
    assert not E.is_llm_ready()
    assert E.active_provider() is None
