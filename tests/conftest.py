"""Shared fixtures: build PAR repositories on disk."""

import json
import os
import sqlite3
import zipfile

import pytest

from par_client.config import ClientConfig
from par_client.constants import Constants, IndexKind
from par_client.repository.checksums import file_digest
from par_client.versioning import Platform, parse_dist_name

TEST_PLATFORM = Platform(runtime_version="5.8.7", arch="my_arch")


def write_index_db(path, entries):
    """Write an index database mapping name -> {dist file: version}."""
    conn = sqlite3.connect(path)
    try:
        conn.execute("CREATE TABLE dists (name TEXT PRIMARY KEY, candidates TEXT NOT NULL)")
        conn.executemany(
            "INSERT INTO dists (name, candidates) VALUES (?, ?)",
            [(name, json.dumps(cands)) for name, cands in entries.items()],
        )
        conn.commit()
    finally:
        conn.close()


def write_index_zip(root, kind, entries):
    """Write <root>/<kind>.zip holding the index as its single member."""
    db_path = os.path.join(root, kind.member_name + ".build")
    write_index_db(db_path, entries)
    zip_path = os.path.join(root, kind.archive_name)
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.write(db_path, arcname=kind.member_name)
    os.unlink(db_path)
    return zip_path


def make_repository(root, modules=None, scripts=None, version=Constants.CLIENT_VERSION,
                    info_text=None, checksums=False):
    """Create a repository under root.

    Every distribution file named in the indexes is written as a small
    archive at <arch>/<runtime>/<file>.
    """
    os.makedirs(root, exist_ok=True)
    if info_text is None:
        info_text = f"repository_version: '{version}'\n" if version is not None else "name: test\n"
    with open(os.path.join(root, Constants.REPOSITORY_INFO_FILE), "w", encoding="utf-8") as fh:
        fh.write(info_text)

    written = []
    for kind, entries in ((IndexKind.MODULES, modules), (IndexKind.SCRIPTS, scripts)):
        if entries is None:
            continue
        written.append(write_index_zip(root, kind, entries))
        for cands in entries.values():
            for dist_file in cands:
                dist = parse_dist_name(dist_file)
                dist_dir = os.path.join(root, dist.arch, dist.runtime_version)
                os.makedirs(dist_dir, exist_ok=True)
                with zipfile.ZipFile(os.path.join(dist_dir, dist.filename), "w") as zf:
                    zf.writestr("MANIFEST", dist.basename + "\n")

    if checksums:
        lines = ["# generated for tests"]
        lines += [f"{os.path.basename(p)}\t{file_digest(p)}" for p in written]
        with open(os.path.join(root, Constants.CHECKSUMS_FILE), "w", encoding="utf-8") as fh:
            fh.write("\n".join(lines) + "\n")
    return str(root)


SAMPLE_MODULES = {
    "Math::Symbolic": {
        "Math-Symbolic-0.502-my_arch-5.8.6.par": "0.502",
        "Math-Symbolic-0.500-my_arch-5.8.7.par": "0.500",
        "Math-Symbolic-0.501-my_arch-5.8.7.par": "0.501",
        "Math-Symbolic-0.501-any_arch-5.8.7.par": "0.501",
    },
    "Other::Arch": {
        "Other-Arch-1.0-other_arch-5.8.7.par": "1.0",
    },
}

SAMPLE_SCRIPTS = {
    "symbolic_calc": {
        "Math-Symbolic-0.501-any_arch-any_version.par": "0.501",
    },
}


@pytest.fixture
def client_config(tmp_path):
    """Config with cache and temp directories inside tmp_path."""
    return ClientConfig(
        cache_dir=str(tmp_path / "cache"),
        temp_dir=str(tmp_path / "tmp"),
        http_retries=1,
    )


@pytest.fixture
def sample_repo(tmp_path):
    """Local repository with SAMPLE_MODULES and SAMPLE_SCRIPTS."""
    return make_repository(str(tmp_path / "repo"), modules=SAMPLE_MODULES, scripts=SAMPLE_SCRIPTS)
