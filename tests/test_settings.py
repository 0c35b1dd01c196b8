"""Tests for settings loading and engine wiring."""

import os
from pathlib import Path

from depot_loader.environment import Environment
from depot_loader.environment import PackageDirectoryEnvironment
from depot_loader.factory import create_engine
from depot_loader.factory import create_stack
from depot_loader.identity import MAIN
from depot_loader.settings import DEFAULT_LOAD_PATH
from depot_loader.settings import DEPOT_PATH_VAR
from depot_loader.settings import LOAD_PATH_VAR
from depot_loader.settings import PROJECT_VAR
from depot_loader.settings import LoaderSettings
from depot_loader.settings import resolve_project_setting


def _load(tmp_path: Path, environ: dict[str, str], settings_file: Path | None = None) -> LoaderSettings:
    return LoaderSettings.load(
        settings_file=settings_file or tmp_path / "absent.yaml",
        environ=environ,
        cwd=tmp_path,
    )


class TestDefaults:
    def test_no_file_no_environment(self, tmp_path: Path):
        settings = _load(tmp_path, {})
        assert settings.load_path == DEFAULT_LOAD_PATH
        assert settings.depot_path == [Path.home() / ".depot_loader"]
        assert settings.active_project is None

    def test_defaults_are_copies(self, tmp_path: Path):
        settings = _load(tmp_path, {})
        settings.load_path.append("extra")
        assert DEFAULT_LOAD_PATH == ["@", "@default"]


class TestEnvironmentVariables:
    def test_load_path_replaces_defaults(self, tmp_path: Path):
        settings = _load(tmp_path, {LOAD_PATH_VAR: os.pathsep.join(["/a", "/b"])})
        assert settings.load_path == ["/a", "/b"]

    def test_empty_element_splices_defaults(self, tmp_path: Path):
        settings = _load(tmp_path, {LOAD_PATH_VAR: "/extra" + os.pathsep})
        assert settings.load_path == ["/extra", "@", "@default"]

    def test_empty_element_in_the_middle(self, tmp_path: Path):
        settings = _load(tmp_path, {DEPOT_PATH_VAR: os.pathsep.join(["/first", "", "/last"])})
        assert settings.depot_path == [Path("/first"), Path.home() / ".depot_loader", Path("/last")]

    def test_project_path_relative_to_cwd(self, tmp_path: Path):
        settings = _load(tmp_path, {PROJECT_VAR: "app"})
        assert settings.active_project == tmp_path / "app"

    def test_project_search_upward(self, tmp_path: Path):
        (tmp_path / "Project.toml").write_text('name = "App"\n')
        nested = tmp_path / "src" / "deep"
        nested.mkdir(parents=True)

        settings = LoaderSettings.load(
            settings_file=tmp_path / "absent.yaml",
            environ={PROJECT_VAR: "@."},
            cwd=nested,
        )

        assert settings.active_project == tmp_path.resolve()

    def test_project_search_finds_nothing(self, tmp_path: Path):
        assert resolve_project_setting("@.", tmp_path) is None


class TestSettingsFile:
    def test_file_values(self, tmp_path: Path):
        settings_file = tmp_path / "settings.yaml"
        settings_file.write_text(
            "load_path:\n  - '@'\n  - /shared/env\ndepot_path:\n  - /opt/depot\nproject: myproject\n"
        )

        settings = _load(tmp_path, {}, settings_file)

        assert settings.load_path == ["@", "/shared/env"]
        assert settings.depot_path == [Path("/opt/depot")]
        assert settings.active_project == tmp_path / "myproject"

    def test_environment_overrides_file(self, tmp_path: Path):
        settings_file = tmp_path / "settings.yaml"
        settings_file.write_text("load_path:\n  - /from/file\n")

        settings = _load(tmp_path, {LOAD_PATH_VAR: "/from/env" + os.pathsep}, settings_file)

        # The empty element splices in the file's value, not the built-in default
        assert settings.load_path == ["/from/env", "/from/file"]

    def test_malformed_file_is_ignored(self, tmp_path: Path):
        settings_file = tmp_path / "settings.yaml"
        settings_file.write_text("load_path: [unclosed\n")
        assert _load(tmp_path, {}, settings_file).load_path == DEFAULT_LOAD_PATH

    def test_non_mapping_file_is_ignored(self, tmp_path: Path):
        settings_file = tmp_path / "settings.yaml"
        settings_file.write_text("- just\n- a list\n")
        assert _load(tmp_path, {}, settings_file).load_path == DEFAULT_LOAD_PATH


class TestFactory:
    def test_stack_from_settings(self, federation):
        packages = federation.root / "shared"
        packages.mkdir()
        settings = LoaderSettings(
            load_path=["@", str(packages), str(federation.root / "missing")],
            depot_path=[federation.depot],
            active_project=federation.app,
        )

        stack = create_stack(settings)

        assert [type(env) for env in stack] == [Environment, PackageDirectoryEnvironment]

    def test_named_environment_from_depot(self, tmp_path: Path):
        env_dir = tmp_path / "depot" / "environments" / "default"
        env_dir.mkdir(parents=True)
        (env_dir / "Project.toml").write_text("[deps]\n")
        settings = LoaderSettings(load_path=["@default"], depot_path=[tmp_path / "depot"])

        stack = create_stack(settings)

        assert len(stack) == 1
        assert stack.environments[0].base_dir == env_dir.resolve()

    def test_engine_loads_federation(self, federation):
        settings = LoaderSettings(load_path=["@"], depot_path=[federation.depot], active_project=federation.app)

        engine = create_engine(settings)
        pub = engine.import_package(MAIN, "Pub")

        assert pub.Priv.LABEL == "Priv (registered)"
