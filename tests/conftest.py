"""Shared fixtures: a throwaway registry, a source project, and a fake npm."""

import json
from pathlib import Path

import pytest

from ipack.settings import IpackSettings
from ipack.workflows.context import IpackContext


class FakeToolchain:
    """Stands in for NpmToolchain. Records every call and the cwd it ran in."""

    def __init__(self):
        self.build_code = 0
        self.pack_code = 0
        self.install_code = 0
        self.deps_code = 0
        self.pack_file = "pkg-1.0.0.tgz"
        self.produce_file = True
        self.calls = []
        self.installs = []

    def build(self, directory):
        self.calls.append(("build", Path(directory), Path.cwd()))
        return self.build_code

    def pack(self, directory):
        self.calls.append(("pack", Path(directory), Path.cwd()))
        if self.produce_file and self.pack_file:
            (Path(directory) / self.pack_file).write_text("tarball")
        return self.pack_code, self.pack_file

    def install(self, artifact, directory, dev=False):
        self.calls.append(("install", Path(directory), Path.cwd()))
        self.installs.append((Path(artifact), Path(directory), dev))
        return self.install_code

    def install_dependencies(self, directory):
        self.calls.append(("install_dependencies", Path(directory), Path.cwd()))
        return self.deps_code

    @property
    def steps(self):
        return [c[0] for c in self.calls]


def write_package_json(directory: Path, **fields) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    path.write_text(json.dumps(fields, indent=2))
    return path


@pytest.fixture
def toolchain():
    return FakeToolchain()


@pytest.fixture
def settings(tmp_path):
    return IpackSettings(registry_dir=tmp_path / "registry")


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "lib"
    write_package_json(root, name="@acme/lib", version="4.2.0")
    return root


@pytest.fixture
def ctx(project, settings, toolchain):
    return IpackContext.create(project, settings, toolchain)
