"""Unit tests for project-level commands."""

import json
import os
import sys

import pytest
import toml

from conftest import make_tar_gz
from spm.errors import InvalidProjectFile, MissingProjectFiles, StaleLockfile, UnresolvableReference
from spm.models import ConfiguredExtension, PinnedVersion
from spm.project import INITIAL_MANIFEST, Project, child_exit_code

VEC = "https://github.com/asg017/sqlite-vec"
SPM_JSON_URL = f"{VEC}/releases/download/v0.1.0/spm.json"


class TestInit:
    """Test project initialization."""

    def test_creates_files(self, project):
        assert project.manifest_path.read_text() == INITIAL_MANIFEST
        assert project.extensions_dir.is_dir()
        assert (project.extensions_dir / ".gitignore").read_text() == "*"

    def test_keeps_existing_manifest(self, project):
        project.manifest_path.write_text('description = "mine"\n[extensions]\n')

        project.init()

        assert "mine" in project.manifest_path.read_text()

    def test_read_empty_manifest(self, project):
        assert project.read_manifest().extensions == {}


class TestManifestFiles:
    """Test reading spm.toml."""

    def test_missing_manifest(self, tmp_path, settings):
        with Project(tmp_path, settings=settings) as project:
            with pytest.raises(MissingProjectFiles) as exc_info:
                project.read_manifest()
        assert "No spm.toml found" in str(exc_info.value)

    @pytest.mark.parametrize("content", ["[extensions", "description = 1\n", "[extensions]\nx = 3\n"])
    def test_invalid_manifest(self, project, content):
        project.manifest_path.write_text(content)
        with pytest.raises(InvalidProjectFile):
            project.read_manifest()

    def test_manifest_not_utf8(self, project):
        project.manifest_path.write_bytes(b"[extensions]\n\xff\xfe = 1\n")

        with pytest.raises(InvalidProjectFile) as exc_info:
            project.read_manifest()
        assert "spm.toml" in str(exc_info.value)


class TestAdd:
    """Test adding extensions."""

    def test_add_latest(self, project, linux_x86):
        installed = project.add("gh:asg017/sqlite-vec", platform=linux_x86)

        data = toml.loads(project.manifest_path.read_text())
        assert data["extensions"] == {VEC: "v0.1.0"}
        assert project.lockfile.load().extensions[VEC].version == "v0.1.0"
        assert (project.extensions_dir / "vec0.so").exists()
        assert installed[0].reference == VEC

    def test_add_with_artifacts(self, project, linux_x86):
        project.add("gh:asg017/sqlite-vec@v0.1.0", artifacts=["vec0"], platform=linux_x86)

        definition = project.read_manifest().extensions[VEC]
        assert isinstance(definition, ConfiguredExtension)
        assert definition.artifacts == ["vec0"]
        assert project.lockfile.load().extensions[VEC].artifacts == ["vec0"]

    def test_other_forms_overwrite_same_key(self, project, fake_github, linux_x86):
        fake_github.add_release(
            "asg017", "sqlite-vec", "v0.1.1",
            {"vec.tar.gz": ("linux", "x86_64", make_tar_gz({"vec0.so": b"v0.1.1"}))},
        )

        project.add("gh:asg017/sqlite-vec", platform=linux_x86)
        project.add("github.com/asg017/sqlite-vec@v0.1.1", platform=linux_x86)

        extensions = project.read_manifest().extensions
        assert list(extensions) == [VEC]
        assert extensions[VEC] == PinnedVersion(version="v0.1.1")
        assert (project.extensions_dir / "vec0.so").read_bytes() == b"v0.1.1"

    def test_bad_reference_changes_nothing(self, project, fake_github):
        with pytest.raises(UnresolvableReference):
            project.add("npm:sqlite-vec")

        assert project.manifest_path.read_text() == INITIAL_MANIFEST
        assert fake_github.requests == []

    def test_without_init(self, tmp_path, settings, fake_github):
        with Project(tmp_path, settings=settings, http=fake_github.client(settings)) as project:
            with pytest.raises(MissingProjectFiles):
                project.add("gh:asg017/sqlite-vec")
        assert fake_github.requests == []


class TestInstall:
    """Test install and clean install."""

    def test_install_regenerates_lock(self, project, linux_x86):
        project.manifest_path.write_text(f'[extensions]\n"{VEC}" = "v0.1.0"\n')

        project.install(platform=linux_x86)

        assert project.lockfile.exists()
        assert (project.extensions_dir / "vec0.so").exists()

    def test_key_pinned_table_definition(self, project, fake_github, linux_x86):
        """Test a `{}` definition locks the version carried by its key."""
        fake_github.add_release(
            "acme", "ext", "v1.0.0",
            {"ext-linux.tar.gz": ("linux", "x86_64", make_tar_gz({"ext0.so": b"ext"}))},
        )
        project.manifest_path.write_text('[extensions]\n"gh:acme/ext@v1.0.0" = {}\n')

        installed = project.install(platform=linux_x86)

        lock = json.loads(project.lockfile_path.read_text())
        assert lock["extensions"]["gh:acme/ext@v1.0.0"]["version"] == "v1.0.0"
        assert installed[0].files == [project.extensions_dir / "ext0.so"]
        assert sorted(path.name for path in project.extensions_dir.iterdir()) == [".gitignore", "ext0.so"]

    def test_clean_install_uses_lock(self, project, fake_github, linux_x86, settings):
        project.manifest_path.write_text(f'[extensions]\n"{VEC}" = "v0.1.0"\n')
        project.generate_lockfile()

        with Project(project.base_dir, settings=settings, http=fake_github.client(settings)) as fresh:
            fake_github.requests.clear()
            fresh.clean_install(platform=linux_x86)

        assert fake_github.requested(SPM_JSON_URL) == []
        assert (project.extensions_dir / "vec0.so").exists()

    def test_clean_install_stale_lock(self, project, linux_x86):
        project.manifest_path.write_text(f'[extensions]\n"{VEC}" = "v0.1.0"\n')
        project.generate_lockfile()
        project.manifest_path.write_text(f'[extensions]\n"{VEC}" = "v0.2.0"\n')

        with pytest.raises(StaleLockfile):
            project.clean_install(platform=linux_x86)
        assert not (project.extensions_dir / "vec0.so").exists()

    def test_clean_install_without_lock(self, project):
        with pytest.raises(MissingProjectFiles) as exc_info:
            project.clean_install()
        assert "spm.lock" in str(exc_info.value)


class TestRun:
    """Test running programs with the library path set."""

    def test_exit_code_passed_through(self, project):
        code = project.run(sys.executable, ["-c", "import sys; sys.exit(3)"])
        assert code == 3

    def test_child_sees_library_path(self, project, tmp_path):
        output = tmp_path / "env.txt"
        script = f"import os; open({str(output)!r}, 'w').write(os.environ['LD_LIBRARY_PATH'])"

        code = project.run(sys.executable, ["-c", script], environ={"PATH": os.environ.get("PATH", "")})

        assert code == 0
        assert output.read_text() == str(project.extensions_dir)

    def test_missing_program(self, project):
        with pytest.raises(OSError):
            project.run("spm-test-program-that-does-not-exist", [])

    @pytest.mark.parametrize("returncode, expected", [(0, 0), (2, 2), (-9, 1)])
    def test_child_exit_code(self, returncode, expected):
        assert child_exit_code(returncode) == expected
