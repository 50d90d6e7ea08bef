"""Tests for the consume workflow and batch installs."""

import json
from pathlib import Path

import pytest

from ipack.errors import AliasNotFound, ArtifactMissing, DataCorruption, InstallFailure
from ipack.workflows.consume import consume, file_reference, install_many, references_artifact

from conftest import write_package_json


@pytest.fixture
def app(tmp_path):
    root = tmp_path / "app"
    write_package_json(root, name="app", dependencies={"left-pad": "^1.3.0"})
    return root


@pytest.fixture
def app_ctx(ctx, app):
    return ctx.for_directory(app)


def _register(ctx, alias, package_name, version, artifact=True):
    ctx.store.upsert_record(alias, package_name, version)
    path = ctx.store.artifact_path(alias, version)
    if artifact:
        path.write_text("tarball")
    return path


def _manifest(root):
    return json.loads((root / "package.json").read_text())


def test_install_writes_regular_dependency(app_ctx, app, toolchain):
    artifact = _register(app_ctx, "@acme/ui", "@acme/ui", 2)

    result = consume(app_ctx, "@acme/ui")

    assert result.version == 2
    assert not result.dev
    assert toolchain.installs == [(artifact, app.resolve(), False)]
    deps = _manifest(app)["dependencies"]
    assert deps["@acme/ui"] == file_reference(artifact)
    assert deps["left-pad"] == "^1.3.0"
    assert "devDependencies" not in _manifest(app)


def test_dev_marker_routes_to_dev_dependencies(app_ctx, app, toolchain):
    artifact = _register(app_ctx, "dev-tool", "dev-tool", 3)
    assert artifact.name == "dev-tool-3.tgz"

    result = consume(app_ctx, "%dev-tool")

    assert result.dev
    assert toolchain.installs == [(artifact, app.resolve(), True)]
    manifest = _manifest(app)
    assert manifest["devDependencies"] == {"dev-tool": file_reference(artifact)}
    assert "dev-tool" not in manifest["dependencies"]


def test_unknown_alias_mutates_nothing(app_ctx, app, toolchain):
    app_ctx.store.load()
    before = (app / "package.json").read_text()

    with pytest.raises(AliasNotFound):
        consume(app_ctx, "nope")

    assert toolchain.calls == []
    assert (app / "package.json").read_text() == before
    assert list(app_ctx.settings.registry_dir.glob("*.tgz")) == []


def test_incomplete_record_is_not_found(app_ctx, toolchain):
    app_ctx.store.save({"ui": {"packageName": "@acme/ui"}})
    with pytest.raises(AliasNotFound):
        consume(app_ctx, "ui")
    assert toolchain.calls == []


def test_already_referenced_is_a_noop(app_ctx, app, toolchain):
    artifact = _register(app_ctx, "ui", "@acme/ui", 1)
    write_package_json(app, name="app", dependencies={"@acme/ui": f"file:{artifact}"})

    result = consume(app_ctx, "ui")

    assert result.already_installed
    assert toolchain.calls == []


def test_already_referenced_matches_by_file_name_in_any_section(app_ctx, app, toolchain):
    _register(app_ctx, "ui", "@acme/ui", 1, artifact=False)
    write_package_json(app, name="app", devDependencies={"@acme/ui": "file:../somewhere/ui-1.tgz"})

    result = consume(app_ctx, "ui")

    assert result.already_installed
    assert toolchain.calls == []


def test_older_version_reference_is_upgraded(app_ctx, app, toolchain):
    artifact = _register(app_ctx, "ui", "@acme/ui", 2)
    write_package_json(app, name="app", dependencies={"@acme/ui": "file:~/.ipacks/ui-1.tgz"})

    result = consume(app_ctx, "ui")

    assert not result.already_installed
    assert _manifest(app)["dependencies"]["@acme/ui"] == file_reference(artifact)


def test_missing_artifact(app_ctx, toolchain):
    _register(app_ctx, "ui", "@acme/ui", 1, artifact=False)
    with pytest.raises(ArtifactMissing):
        consume(app_ctx, "ui")
    assert toolchain.calls == []


def test_install_failure_leaves_manifest(app_ctx, app, toolchain):
    _register(app_ctx, "ui", "@acme/ui", 1)
    toolchain.install_code = 1
    before = (app / "package.json").read_text()

    with pytest.raises(InstallFailure):
        consume(app_ctx, "ui")
    assert (app / "package.json").read_text() == before


def test_manifest_rewrite_failure_is_a_warning(app_ctx, app, toolchain):
    _register(app_ctx, "ui", "@acme/ui", 1)
    (app / "package.json").unlink()

    result = consume(app_ctx, "ui")

    assert len(result.warnings) == 1
    assert toolchain.steps == ["install"]


def test_ignored_alias_is_a_noop(app_ctx, toolchain):
    result = consume(app_ctx, "!ui")
    assert result.skipped
    assert toolchain.calls == []


def test_install_many_continues_past_failures(app_ctx, toolchain):
    _register(app_ctx, "a", "pkg-a", 1)
    _register(app_ctx, "c", "pkg-c", 5)

    batch = install_many(app_ctx, ["a", "missing", "c"])

    assert not batch.ok
    assert [r.alias for r in batch.results] == ["a", "c"]
    assert [alias for alias, _ in batch.failures] == ["missing"]
    assert isinstance(batch.failures[0][1], AliasNotFound)
    assert len(toolchain.installs) == 2


def test_install_many_reports_unreadable_registry_per_alias(app_ctx, app, toolchain):
    app_ctx.store.registry_dir.mkdir(parents=True, exist_ok=True)
    app_ctx.store.data_path.write_bytes(b"\xff\xfe")

    batch = install_many(app_ctx, ["ui", "core"])

    assert not batch.ok
    assert [alias for alias, _ in batch.failures] == ["ui", "core"]
    assert all(isinstance(e, DataCorruption) for _, e in batch.failures)
    assert toolchain.installs == []
    assert _manifest(app)["dependencies"] == {"left-pad": "^1.3.0"}


def test_manifest_rewrite_keeps_non_ascii_text(app_ctx, app, toolchain):
    write_package_json(app, name="app", description="café", dependencies={})
    _register(app_ctx, "ui", "@acme/ui", 1)

    consume(app_ctx, "ui")

    text = (app / "package.json").read_text(encoding="utf-8")
    assert "café" in text
    assert "\\u00e9" not in text
    assert json.loads(text)["description"] == "café"


def test_file_reference_is_home_relative(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    artifact = tmp_path / ".ipacks" / "ui-3.tgz"
    assert file_reference(artifact) == "file:~/.ipacks/ui-3.tgz"


def test_file_reference_outside_home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    artifact = tmp_path / "registry" / "ui-3.tgz"
    assert file_reference(artifact) == f"file:{artifact.as_posix()}"


def test_references_artifact(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    artifact = tmp_path / ".ipacks" / "ui-3.tgz"
    root = tmp_path / "app"

    assert references_artifact("file:~/.ipacks/ui-3.tgz", artifact, root)
    assert references_artifact("file:../.ipacks/ui-3.tgz", artifact, root)
    assert references_artifact(str(artifact), artifact, root)
    assert not references_artifact("file:~/.ipacks/ui-2.tgz", artifact, root)
    assert not references_artifact("^3.0.0", artifact, root)
    assert not references_artifact("file:", artifact, root)
