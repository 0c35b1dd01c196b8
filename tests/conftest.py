"""Pytest configuration and shared fixtures for depot-loader tests.

The `federation` fixture lays out a small federation on disk:

    App (U0)          roots: App -> U0, Priv -> UP, Pub -> UQ
    Priv (UP)         local checkout at App/deps/Priv
    Pub (UQ)          installed in the depot; imports Priv -> US, SomeOther -> UR
    Priv (US)         installed in the depot, unrelated to Priv (UP)
    SomeOther (UR)    installed in the depot
"""

from pathlib import Path
from textwrap import dedent
from types import SimpleNamespace

import pytest

from helpers import HASH_UQ
from helpers import HASH_UR
from helpers import HASH_US
from helpers import U0
from helpers import UP
from helpers import UQ
from helpers import UR
from helpers import US
from helpers import install_in_depot
from helpers import write_entry_file


@pytest.fixture
def federation(tmp_path: Path) -> SimpleNamespace:
    app = tmp_path / "App"
    app.mkdir()
    depot = tmp_path / "depot"

    (app / "Project.toml").write_text(
        dedent(f"""
        name = "App"
        uuid = "{U0}"

        [deps]
        Priv = "{UP}"
        Pub = "{UQ}"
        """)
    )
    (app / "Manifest.toml").write_text(
        dedent(f"""
        manifest_format = "2.0"

        [[deps.Priv]]
        uuid = "{UP}"
        path = "deps/Priv"

        [[deps.Priv]]
        uuid = "{US}"
        git-tree-sha1 = "{HASH_US}"
        version = "1.2.0"

        [[deps.Pub]]
        uuid = "{UQ}"
        git-tree-sha1 = "{HASH_UQ}"
        version = "0.3.1"

        [deps.Pub.deps]
        Priv = "{US}"
        SomeOther = "{UR}"

        [[deps.SomeOther]]
        uuid = "{UR}"
        git-tree-sha1 = "{HASH_UR}"
        """)
    )

    write_entry_file(
        app,
        "App",
        """
        require("Priv")
        require("Pub")
        LABEL = "App"
        """,
    )
    write_entry_file(app / "deps" / "Priv", "Priv", 'LABEL = "Priv (local)"\n')
    install_in_depot(depot, "Priv", US, HASH_US, 'LABEL = "Priv (registered)"\n')
    install_in_depot(
        depot,
        "Pub",
        UQ,
        HASH_UQ,
        """
        require("Priv")
        require("SomeOther")
        LABEL = "Pub"
        """,
    )
    install_in_depot(depot, "SomeOther", UR, HASH_UR, 'LABEL = "SomeOther"\n')

    return SimpleNamespace(app=app, depot=depot, root=tmp_path)
