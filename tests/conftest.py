"""Pytest configuration and shared fixtures."""

import base64
import hashlib
import io
import json
import sys
import tarfile
import zipfile
from pathlib import Path

import httpx
import pytest

# Add the src directory to Python path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from spm.config import SpmConfig  # noqa: E402
from spm.host import LINUX_LIBRARY_PATH, Platform  # noqa: E402
from spm.http import HttpClient  # noqa: E402
from spm.project import Project  # noqa: E402

API_URL = "https://api.github.com"


def make_tar_gz(files, mode=0o755):
    """Build .tar.gz bytes from a {name: bytes} mapping."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def make_zip(files):
    """Build .zip bytes from a {name: bytes} mapping."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in files.items():
            archive.writestr(name, data)
    return buffer.getvalue()


def artifact(os, cpu, asset_name, data):
    """spm.json ``loadable`` entry describing ``data``."""
    return {
        "os": os,
        "cpu": cpu,
        "assetName": asset_name,
        "assetSha256": hashlib.sha256(data).hexdigest(),
        "assetMd5": base64.b64encode(hashlib.md5(data).digest()).decode("ascii"),
    }


class FakeGithub:
    """In-memory stand-in for the GitHub API and release downloads."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, url, content=b"", status=200):
        self.routes[url] = (status, content)

    def add_json(self, url, payload, status=200):
        self.add(url, json.dumps(payload).encode("utf-8"), status)

    def add_release(self, owner, repo, version, assets, latest=False):
        """
        Publish a release.

        Args:
            assets: {asset_name: (os, cpu, bytes)}
            latest: Also answer the releases/latest endpoint with this tag
        """
        loadable = []
        for asset_name, (os, cpu, data) in assets.items():
            loadable.append(artifact(os, cpu, asset_name, data))
            self.add(f"https://github.com/{owner}/{repo}/releases/download/{version}/{asset_name}", data)
        manifest = {"version": 0, "description": f"{repo} {version}", "loadable": loadable}
        self.add_json(f"https://github.com/{owner}/{repo}/releases/download/{version}/spm.json", manifest)
        if latest:
            self.add_json(f"{API_URL}/repos/{owner}/{repo}/releases/latest", {"tag_name": version})
        return manifest

    def requested(self, url):
        return [request for request in self.requests if str(request.url) == url]

    def handler(self, request):
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, content=b"Not Found")
        status, content = route
        return httpx.Response(status, content=content)

    def client(self, settings=None):
        return HttpClient(settings or offline_settings(), transport=httpx.MockTransport(self.handler))


def offline_settings():
    """Settings that ignore GITHUB_TOKEN and friends from the environment."""
    return SpmConfig(github_api_url=API_URL, github_token=None, http_timeout=None)


@pytest.fixture
def settings():
    return offline_settings()


@pytest.fixture
def fake_github():
    """A FakeGithub publishing sqlite-vec v0.1.0 as the latest release."""
    github = FakeGithub()
    github.add_release(
        "asg017", "sqlite-vec", "v0.1.0",
        {
            "sqlite-vec-v0.1.0-loadable-linux-x86_64.tar.gz": (
                "linux", "x86_64", make_tar_gz({"vec0.so": b"\x7fELF linux vec0"}),
            ),
            "sqlite-vec-v0.1.0-loadable-macos-aarch64.tar.gz": (
                "darwin", "aarch64", make_tar_gz({"vec0.dylib": b"macho vec0"}),
            ),
        },
        latest=True,
    )
    return github


@pytest.fixture
def linux_x86():
    return Platform(os="linux", cpu="x86_64")


@pytest.fixture
def project(tmp_path, settings, fake_github):
    """An initialized project talking to fake_github."""
    project = Project(
        tmp_path,
        settings=settings,
        http=fake_github.client(settings),
        path_config=LINUX_LIBRARY_PATH,
    )
    project.init()
    yield project
    project.close()
