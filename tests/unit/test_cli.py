"""
Unit tests for the command-line entry point.
"""

import pytest

import translate
from prompts.prompts import TITLE_SYSTEM_PROMPT, load_prompts


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run from an empty directory with no API settings in the environment."""
    monkeypatch.chdir(tmp_path)
    for name in ("API_KEY", "SCOUT_API_KEY", "TSUNDOKU_CONFIG_DIR", "TRANSLATION_CHUNK_SIZE"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


class TestArguments:
    """Argument parsing."""

    def test_defaults(self):
        """Should parse a bare URL."""
        args = translate.build_parser().parse_args(["https://kakuyomu.jp/works/1"])
        assert args.start is None and args.end is None
        assert not args.no_name_pause

    def test_range_must_be_positive(self):
        """Should reject chapter numbers below one."""
        with pytest.raises(SystemExit) as excinfo:
            translate.build_parser().parse_args(["https://kakuyomu.jp/works/1", "--start", "0"])
        assert excinfo.value.code == 2


class TestMain:
    """Exit codes."""

    def test_unconfigured_key_exits_cleanly(self, isolated):
        """Should explain what to set and exit with 0."""
        assert translate.main(["https://kakuyomu.jp/works/1", "--config-dir", str(isolated), "--no-color"]) == 0

    def test_invalid_setting_exits_with_error(self, isolated, monkeypatch):
        """Should exit with 1 on an invalid configuration value."""
        monkeypatch.setenv("API_KEY", "sk-test")
        monkeypatch.setenv("TRANSLATION_CHUNK_SIZE", "0")
        assert translate.main(["https://kakuyomu.jp/works/1", "--config-dir", str(isolated)]) == 1

    def test_unsupported_url_exits_with_error(self, isolated, monkeypatch):
        """Should exit with 1 when no scraper handles the URL."""
        monkeypatch.setenv("API_KEY", "sk-test")
        assert translate.main(["https://example.com/novel", "--config-dir", str(isolated)]) == 1


class TestPromptOverrides:
    """Prompt files in the config directory."""

    def test_defaults_without_overrides(self, tmp_path):
        """Should use built-in prompts."""
        assert load_prompts(tmp_path).title == TITLE_SYSTEM_PROMPT

    def test_override_file(self, tmp_path):
        """Should replace a prompt with a non-empty file."""
        prompts_dir = tmp_path / "prompts"
        prompts_dir.mkdir()
        (prompts_dir / "content.txt").write_text("Translate tersely.\n", encoding="utf-8")
        (prompts_dir / "title.txt").write_text("   ", encoding="utf-8")

        prompts = load_prompts(tmp_path)

        assert prompts.content == "Translate tersely."
        assert prompts.title == TITLE_SYSTEM_PROMPT
