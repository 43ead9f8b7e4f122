"""Tests for wordbench.engine factory loading."""
from __future__ import annotations

from pathlib import Path

import pytest

from wordbench.engine import EngineLoadError, SearchEngine, engine_version, load_engine, resolve_factory

ENGINE_MODULE = '''
__version__ = "2.1.0"


class EchoEngine:
    def __init__(self, rules_file=None, dict_file=None):
        self.rules_file = rules_file
        self.dict_file = dict_file

    def search(self, word):
        yield word


def build_engine(rules_file=None, dict_file=None):
    return EchoEngine(rules_file, dict_file)


def not_an_engine(rules_file=None, dict_file=None):
    return object()


class Factories:
    build = staticmethod(build_engine)


CONSTANT = 3
'''


@pytest.fixture()
def engine_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    (tmp_path / "fake_wb_engine.py").write_text(ENGINE_MODULE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    return "fake_wb_engine"


class TestResolveFactory:
    def test_plain_and_dotted(self, engine_module: str) -> None:
        assert callable(resolve_factory(f"{engine_module}:build_engine"))
        assert callable(resolve_factory(f"{engine_module}:Factories.build"))

    @pytest.mark.parametrize("path", ["no_colon", ":attr", "module:"])
    def test_malformed_path(self, path: str) -> None:
        with pytest.raises(ValueError):
            resolve_factory(path)

    def test_not_callable(self, engine_module: str) -> None:
        with pytest.raises(TypeError):
            resolve_factory(f"{engine_module}:CONSTANT")

    def test_missing_attr(self, engine_module: str) -> None:
        with pytest.raises(AttributeError):
            resolve_factory(f"{engine_module}:nope")


class TestLoadEngine:
    def test_passes_files_to_factory(self, engine_module: str, tmp_path: Path) -> None:
        engine = load_engine(
            f"{engine_module}:build_engine",
            rules_file=tmp_path / "r.txt",
            dict_file=tmp_path / "d.txt",
        )
        assert isinstance(engine, SearchEngine)
        assert engine.rules_file == tmp_path / "r.txt"  # type: ignore[attr-defined]
        assert list(engine.search("ola")) == ["ola"]

    def test_rejects_object_without_search(self, engine_module: str) -> None:
        with pytest.raises(EngineLoadError):
            load_engine(f"{engine_module}:not_an_engine")

    @pytest.mark.parametrize("suffix", [":nope", ":CONSTANT", ""])
    def test_unresolvable_factory(self, engine_module: str, suffix: str) -> None:
        with pytest.raises(EngineLoadError):
            load_engine(f"{engine_module}{suffix}")

    def test_missing_module(self) -> None:
        with pytest.raises(EngineLoadError):
            load_engine("definitely_not_installed_wb:make")

    def test_engine_version(self, engine_module: str) -> None:
        assert engine_version(f"{engine_module}:build_engine") == "2.1.0"
        assert engine_version("definitely_not_installed_wb:make") == ""
