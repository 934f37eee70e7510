from __future__ import annotations

import json

from swagify.base import DESCRIPTION_PLACEHOLDER
from swagify.config import DEFAULT_IGNORE_DIRS, SwagifyConfig


def test_defaults():
    config = SwagifyConfig()
    assert config.handler_suffix == "Controller.cs"
    assert config.annotation_name == "SwaggerResponse"
    assert config.status_enum_name == "HttpStatusCode"
    assert config.description_placeholder == DESCRIPTION_PLACEHOLDER
    assert config.ignore_dirs == DEFAULT_IGNORE_DIRS
    assert config.ignore_dirs is not DEFAULT_IGNORE_DIRS


def test_from_env(monkeypatch):
    monkeypatch.setenv("SWAGIFY_HANDLER_SUFFIX", "Endpoints.cs")
    monkeypatch.setenv("SWAGIFY_ANNOTATION_NAME", "ProducesResponse")
    monkeypatch.setenv("SWAGIFY_PLACEHOLDER", "Describe me")
    monkeypatch.setenv("SWAGIFY_IGNORE_DIRS", "bin, obj ,")
    monkeypatch.setenv("SWAGIFY_MAX_FILE_SIZE", "2")

    config = SwagifyConfig.from_env()
    assert config.handler_suffix == "Endpoints.cs"
    assert config.annotation_name == "ProducesResponse"
    assert config.status_enum_name == "HttpStatusCode"
    assert config.description_placeholder == "Describe me"
    assert config.ignore_dirs == {"bin", "obj"}
    assert config.max_file_size_mb == 2


def test_from_env_without_variables_uses_defaults(monkeypatch):
    for name in ("SWAGIFY_HANDLER_SUFFIX", "SWAGIFY_IGNORE_DIRS", "SWAGIFY_MAX_FILE_SIZE"):
        monkeypatch.delenv(name, raising=False)
    config = SwagifyConfig.from_env()
    assert config.handler_suffix == "Controller.cs"
    assert config.ignore_dirs == DEFAULT_IGNORE_DIRS


def test_from_json_file(tmp_path):
    path = tmp_path / "swagify.json"
    path.write_text(json.dumps({"status_enum_name": "StatusCodes", "ignore_dirs": ["generated"]}))

    config = SwagifyConfig.from_file(str(path))
    assert config.status_enum_name == "StatusCodes"
    assert config.ignore_dirs == {"generated"}


def test_from_yaml_file(tmp_path):
    path = tmp_path / "swagify.yaml"
    path.write_text("annotation_name: ProducesResponse\nignore_dirs:\n  - bin\n  - legacy\n")

    config = SwagifyConfig.from_file(str(path))
    assert config.annotation_name == "ProducesResponse"
    assert config.ignore_dirs == {"bin", "legacy"}


def test_empty_yaml_file_gives_defaults(tmp_path):
    path = tmp_path / "swagify.yml"
    path.write_text("")
    assert SwagifyConfig.from_file(str(path)).to_dict() == SwagifyConfig().to_dict()


def test_to_dict_is_json_ready():
    data = SwagifyConfig(ignore_dirs={"b", "a"}).to_dict()
    assert data["ignore_dirs"] == ["a", "b"]
    assert json.loads(json.dumps(data)) == data
