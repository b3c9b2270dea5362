from habitquest.gemini.credentials import EnvKeySelector


def test_explicit_key_is_selected(tmp_path):
    selector = EnvKeySelector("abc", env_file=str(tmp_path / ".env"))

    assert selector.has_selected_key()
    assert selector.api_key == "abc"


def test_open_select_key_rereads_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "")
    monkeypatch.setenv("API_KEY", "")
    selector = EnvKeySelector(env_file=str(tmp_path / ".env"))
    assert not selector.has_selected_key()

    monkeypatch.setenv("API_KEY", "from-env")
    selector.open_select_key()

    assert selector.api_key == "from-env"


def test_open_select_key_reads_env_file(tmp_path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "")
    monkeypatch.setenv("API_KEY", "")
    env_file = tmp_path / ".env"
    env_file.write_text("GEMINI_API_KEY=from-file\n")
    selector = EnvKeySelector(env_file=str(env_file))

    selector.open_select_key()

    assert selector.has_selected_key()
    assert selector.api_key == "from-file"
