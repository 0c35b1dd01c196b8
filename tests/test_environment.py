"""Tests for explicit and package-directory environments."""

from pathlib import Path
from textwrap import dedent

import pytest

from helpers import U0
from helpers import UP
from helpers import UQ
from helpers import UR
from helpers import US
from helpers import write_entry_file
from depot_loader.environment import Environment
from depot_loader.environment import PackageDirectoryEnvironment
from depot_loader.errors import ConfigError
from depot_loader.identity import MAIN
from depot_loader.identity import PackageIdentity


@pytest.fixture
def env() -> Environment:
    project = {"name": "App", "uuid": str(U0), "deps": {"Priv": str(UP), "Pub": str(UQ)}}
    manifest = {
        "manifest_format": "2.0",
        "deps": {
            "Priv": [{"uuid": str(UP), "path": "deps/Priv"}, {"uuid": str(US), "git-tree-sha1": "1" * 40}],
            "Pub": [{"uuid": str(UQ), "deps": {"Priv": str(US), "SomeOther": str(UR)}}],
        },
    }
    return Environment.from_documents(project, manifest, Path("/home/me/projects/App"))


class TestEnvironmentMaps:
    def test_roots(self, env: Environment):
        assert dict(env.roots) == {"App": U0, "Priv": UP, "Pub": UQ}

    def test_graph(self, env: Environment):
        assert dict(env.graph[UQ]) == {"Priv": US, "SomeOther": UR}

    def test_paths_one_entry_per_stanza_plus_project(self, env: Environment):
        assert set(env.paths) == {U0, UP, US, UQ}
        assert env.paths[U0].explicit_path == "."

    def test_maps_are_read_only(self, env: Environment):
        with pytest.raises(TypeError):
            env.roots["Other"] = U0  # type: ignore[index]

    def test_missing_documents_give_empty_maps(self):
        env = Environment.from_documents(None, None, Path("/nowhere"))
        assert len(env.roots) == 0
        assert len(env.graph) == 0
        assert len(env.paths) == 0

    def test_contradictory_roots_is_config_error(self):
        project = {"name": "App", "uuid": str(U0), "deps": {"App": str(UP)}}
        with pytest.raises(ConfigError):
            Environment.from_documents(project, None, Path("/nowhere"))


class TestEnvironmentResolve:
    def test_main_resolves_through_roots(self, env: Environment):
        assert env.resolve(MAIN, "Priv") == PackageIdentity("Priv", UP)

    def test_package_resolves_through_graph(self, env: Environment):
        pub = PackageIdentity("Pub", UQ)
        resolved = env.resolve(pub, "Priv")
        assert resolved == PackageIdentity("Priv", US)
        assert resolved != env.resolve(MAIN, "Priv")

    def test_project_uuid_resolves_through_roots(self, env: Environment):
        assert env.resolve(PackageIdentity("App", U0), "Pub") == PackageIdentity("Pub", UQ)

    def test_unknown_name_from_root_is_none(self, env: Environment):
        assert env.resolve(MAIN, "SomeOther") is None

    def test_unknown_name_from_package_is_none(self, env: Environment):
        assert env.resolve(PackageIdentity("Pub", UQ), "Nope") is None

    def test_requester_without_graph_entry_is_none_for_every_name(self, env: Environment):
        leaf = PackageIdentity("Priv", US)
        for name in ["Priv", "Pub", "SomeOther", "App"]:
            assert env.resolve(leaf, name) is None

    def test_nameless_uuid_project_resolves_itself(self):
        env = Environment.from_documents({"name": "Script"}, None, Path("/scripts"))
        assert env.resolve(MAIN, "Script") == PackageIdentity("Script")
        assert env.path_entry(PackageIdentity("Script")).explicit_path == "."


class TestEnvironmentFromDirectory:
    def test_reads_files(self, federation):
        env = Environment.from_directory(federation.app)
        assert env.base_dir == federation.app.resolve()
        assert env.project_identity == PackageIdentity("App", U0)
        assert env.resolve(PackageIdentity("Pub", UQ), "SomeOther") == PackageIdentity("SomeOther", UR)

    def test_config_error_names_the_file(self, tmp_path: Path):
        (tmp_path / "Project.toml").write_text('deps = "oops"\n')
        with pytest.raises(ConfigError) as exc_info:
            Environment.from_directory(tmp_path)
        assert exc_info.value.path is not None


class TestPackageDirectoryEnvironment:
    @pytest.fixture
    def packages(self, tmp_path: Path) -> Path:
        write_entry_file(tmp_path / "Tools", "Tools", "LABEL = 'Tools'\n")
        (tmp_path / "Tools" / "Project.toml").write_text(
            dedent(f"""
            name = "Tools"
            uuid = "{UQ}"

            [deps]
            Helper = "{UR}"
            """)
        )
        write_entry_file(tmp_path / "Helper", "Helper")
        (tmp_path / "Helper" / "Project.toml").write_text(f'name = "Helper"\nuuid = "{UR}"\n')
        (tmp_path / "Loose.py").write_text("LABEL = 'Loose'\n")
        (tmp_path / "not-a-package").mkdir()
        return tmp_path

    def test_root_context_sees_every_package(self, packages: Path):
        env = PackageDirectoryEnvironment(packages)
        assert env.resolve(MAIN, "Tools") == PackageIdentity("Tools", UQ)
        assert env.resolve(MAIN, "Loose") == PackageIdentity("Loose")
        assert env.resolve(MAIN, "not-a-package") is None

    def test_package_context_uses_its_project_deps(self, packages: Path):
        env = PackageDirectoryEnvironment(packages)
        assert env.resolve(PackageIdentity("Tools", UQ), "Helper") == PackageIdentity("Helper", UR)
        assert env.resolve(PackageIdentity("Tools", UQ), "Loose") is None

    def test_path_entries(self, packages: Path):
        env = PackageDirectoryEnvironment(packages)
        assert env.path_entry(PackageIdentity("Tools", UQ)).explicit_path == str(packages / "Tools")
        assert env.path_entry(PackageIdentity("Loose")).explicit_path == str(packages / "Loose.py")

    def test_path_entry_requires_matching_uuid(self, packages: Path):
        env = PackageDirectoryEnvironment(packages)
        assert env.path_entry(PackageIdentity("Tools", US)) is None

    def test_missing_directory_is_empty(self, tmp_path: Path):
        env = PackageDirectoryEnvironment(tmp_path / "missing")
        assert env.resolve(MAIN, "Anything") is None
