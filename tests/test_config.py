"""Tests for backend configuration, game settings and vocabulary loading."""

import json
import random

import pytest
import yaml

from llmcore.adapters.chat_adapter import ChatCompletionsAdapter
from llmcore.adapters.ollama_adapter import OllamaAdapter
from llmcore.config import (
    BACKEND_ENV_VAR,
    build_generator,
    get_api_key,
    list_backends,
    load_backend_config,
    resolve_backend,
)
from tajniacy.cards import Deck
from tajniacy.settings import GameSettings, load_game_settings
from tajniacy.vocabulary import load_vocabulary


class TestBackendConfig:
    def setup_method(self):
        self.config = load_backend_config()

    def test_packaged_backends(self):
        assert {"deepseek", "openrouter", "local"} <= set(list_backends(self.config))
        assert self.config["default_backend"] == "deepseek"

    def test_default_backend(self, monkeypatch):
        monkeypatch.delenv(BACKEND_ENV_VAR, raising=False)
        settings = resolve_backend(config=self.config)
        assert settings["name"] == "deepseek"
        assert settings["model"] == "deepseek-chat"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv(BACKEND_ENV_VAR, "local")
        assert resolve_backend(config=self.config)["name"] == "local"

    def test_explicit_name_wins(self, monkeypatch):
        monkeypatch.setenv(BACKEND_ENV_VAR, "local")
        assert resolve_backend("openrouter", self.config)["name"] == "openrouter"

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown backend"):
            resolve_backend("gpt-17", self.config)

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
        with pytest.raises(ValueError):
            get_api_key("DEEPSEEK_API_KEY")
        with pytest.raises(ValueError):
            build_generator("deepseek")

    def test_build_chat_generator(self, monkeypatch):
        monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")
        generator = build_generator("deepseek")
        assert isinstance(generator, ChatCompletionsAdapter)
        assert generator.model == "deepseek-chat"

    def test_build_local_generator(self):
        generator = build_generator("local")
        assert isinstance(generator, OllamaAdapter)
        assert generator.timeout == 600

    def test_custom_config_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(BACKEND_ENV_VAR, raising=False)
        path = tmp_path / "backends.yml"
        path.write_text(
            yaml.safe_dump(
                {
                    "default_backend": "box",
                    "backends": {"box": {"type": "ollama", "endpoint": "http://box:11434/api/generate", "model": "m"}},
                }
            )
        )
        generator = build_generator(config_file=path)
        assert generator.endpoint == "http://box:11434/api/generate"

    def test_unsupported_type(self, tmp_path):
        path = tmp_path / "backends.yml"
        path.write_text(yaml.safe_dump({"backends": {"x": {"type": "carrier-pigeon"}}}))
        with pytest.raises(ValueError, match="unsupported type"):
            build_generator("x", config_file=path)

    def test_missing_backends_mapping(self, tmp_path):
        path = tmp_path / "backends.yml"
        path.write_text("default_backend: x\n")
        with pytest.raises(ValueError):
            load_backend_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_backend_config(tmp_path / "nope.yml")


class TestGameSettings:
    def test_packaged_defaults(self):
        settings = load_game_settings()
        assert settings.max_tokens == 256
        assert settings.hint_max_attempts is None
        assert settings.pick_max_attempts is None
        assert settings.reaction_max_attempts == 5

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_game_settings(tmp_path / "game.yml") == GameSettings()

    def test_custom_file(self, tmp_path):
        path = tmp_path / "game.yml"
        path.write_text("max_tokens: 512\nhint_max_attempts: 10\nunknown_key: 1\n")
        settings = load_game_settings(path)
        assert settings.max_tokens == 512
        assert settings.hint_max_attempts == 10
        assert settings.reaction_max_attempts == 5

    def test_policy_for(self):
        settings = GameSettings(hint_max_attempts=None, reaction_max_attempts=3)
        assert not settings.policy_for("hint").is_bounded
        assert settings.policy_for("reaction").max_attempts == 3

        def callback(rejection):
            return None

        assert settings.policy_for("pick", callback).on_rejected is callback

    def test_unknown_flow(self):
        with pytest.raises(ValueError):
            GameSettings().policy_for("referee")

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_tokens": 0}, {"hint_max_attempts": 0}, {"reaction_max_attempts": True}, {"pick_max_attempts": "3"}],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            GameSettings(**kwargs)


class TestVocabulary:
    def test_packaged_vocabulary_builds_a_deck(self):
        words = load_vocabulary()
        assert {"kot", "pies", "traktor"} <= set(words)
        assert len(Deck.from_vocabulary(words, rng=random.Random(0))) == 25

    def test_yaml_list(self, tmp_path):
        path = tmp_path / "words.yaml"
        path.write_text(yaml.safe_dump({"words": ["a", "b"]}))
        assert load_vocabulary(path) == ["a", "b"]

    def test_yaml_mapping_with_vectors(self, tmp_path):
        path = tmp_path / "words.yml"
        path.write_text(yaml.safe_dump({"words": {"a": [1, 2], "b": None}}))
        assert load_vocabulary(path) == {"a": [1.0, 2.0], "b": None}

    def test_json_vector_base(self, tmp_path):
        path = tmp_path / "base.json"
        path.write_text(json.dumps({"kot": [0.1, 0.2], "pies": [0.3, 0.4]}))
        assert load_vocabulary(path) == {"kot": [0.1, 0.2], "pies": [0.3, 0.4]}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_vocabulary(tmp_path / "nope.yaml")

    @pytest.mark.parametrize(
        "content",
        ["names: [a, b]\n", "words: 5\n", "words: [a, 3]\n", "words: {a: 1}\n", "words: [unclosed\n"],
    )
    def test_malformed_yaml(self, tmp_path, content):
        path = tmp_path / "words.yaml"
        path.write_text(content)
        with pytest.raises(ValueError):
            load_vocabulary(path)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "base.json"
        path.write_text("{oops")
        with pytest.raises(ValueError):
            load_vocabulary(path)
