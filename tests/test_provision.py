from __future__ import annotations

import os
from pathlib import Path

import pytest

from conftest import FakeResponse, FakeSession, make_tar_gz
from harbor_installer.config import InstallerConfig
from harbor_installer.errors import ExtractError, FetchError, UnsupportedArchitecture
from harbor_installer.lib import arch as arch_mod
from harbor_installer.lib.arch import ArchDescriptor
from harbor_installer.lib.command import CmdResult
from harbor_installer.lib.fetch import Fetcher
from harbor_installer.lib.sources import apk_tools_urls, gotty_url, proot_url, rootfs_urls
from harbor_installer.main import provision
from harbor_installer.marker import load_marker
from harbor_installer.pipeline import BootstrapStatus
from harbor_installer.steps import step_60_install_base

X86 = ArchDescriptor("x86_64", "amd64")


@pytest.fixture
def artifacts(tmp_path: Path):
    src = tmp_path / "artifacts"
    rootfs = make_tar_gz(
        src / "rootfs.tar.gz",
        {
            "bin/busybox": b"\x7fELF busybox",
            "etc/os-release": b'NAME="Alpine Linux"\nPRETTY_NAME="Alpine Linux v3.18"\n',
            "etc/alpine-release": b"3.18.3\n",
        },
        symlinks={"bin/sh": "/bin/busybox"},
        modes={"bin/busybox": 0o755},
    )
    apk = make_tar_gz(
        src / "apk-tools-static.apk",
        {".PKGINFO": b"pkgname = apk-tools-static\n", "sbin/apk.static": b"\x7fELF apk"},
        modes={"sbin/apk.static": 0o755},
    )
    gotty = make_tar_gz(src / "gotty.tar.gz", {"gotty": b"\x7fELF gotty"})
    return {
        "rootfs": rootfs.read_bytes(),
        "apk": apk.read_bytes(),
        "gotty": gotty.read_bytes(),
        "proot": b"\x7fELF proot",
    }


def _routes(cfg: InstallerConfig, artifacts, *, apk: bool = True):
    routes = {
        rootfs_urls(cfg, X86)[0]: FakeResponse(200, artifacts["rootfs"], chunks=3),
        gotty_url(cfg, X86): FakeResponse(200, artifacts["gotty"]),
        proot_url(cfg, X86): FakeResponse(200, artifacts["proot"]),
    }
    if apk:
        routes[apk_tools_urls(cfg, X86)[0]] = FakeResponse(200, artifacts["apk"])
    return routes


@pytest.fixture
def host(monkeypatch):
    """Pretend to be an x86_64 host and record apk.static invocations."""

    apk_calls = []

    def fake_uname(argv, **kwargs):
        return CmdResult(argv=list(argv), returncode=0, stdout="x86_64\n", stderr="")

    def fake_apk(argv, **kwargs):
        apk_calls.append(list(argv))
        return CmdResult(argv=list(argv), returncode=0, stdout="OK: 10 MiB in 20 packages\n", stderr="")

    monkeypatch.setattr(arch_mod, "run_cmd", fake_uname)
    monkeypatch.setattr(step_60_install_base, "run_cmd", fake_apk)
    return apk_calls


def test_full_run_provisions_root(cfg, artifacts, host):
    session = FakeSession(_routes(cfg, artifacts))
    root = Path(cfg.rootfs_dir)

    result = provision(cfg, fetcher=Fetcher(session_factory=lambda: session))

    assert result.status is BootstrapStatus.MARKED
    assert result.ran_steps[0] == "10_resolve_arch"
    assert result.ran_steps[-1] == "90_write_marker"

    assert (root / "etc/resolv.conf").read_text() == "nameserver 1.1.1.1\nnameserver 1.0.0.1"
    assert os.readlink(root / "bin/sh") == "/bin/busybox"
    for tool in ("proot", "gotty"):
        path = root / "usr/local/bin" / tool
        assert path.is_file()
        assert path.stat().st_mode & 0o777 == 0o755

    markers = [p for p in root.iterdir() if p.name == ".installed"]
    assert len(markers) == 1
    marker = load_marker(markers[0])
    assert marker["arch"] == "x86_64"
    assert marker["arch_alt"] == "amd64"
    assert result.marker == marker

    assert host == [
        [
            str(Path(cfg.tmp_dir) / "harbor-bootstrap/apk/sbin/apk.static"),
            "-X",
            "https://dl-cdn.alpinelinux.org/alpine/v3.18/main/",
            "-U",
            "--allow-untrusted",
            "--root",
            cfg.rootfs_dir,
            "add",
            "alpine-base",
            "apk-tools",
        ]
    ]

    # temporary artifacts are gone
    assert not (Path(cfg.tmp_dir) / "harbor-bootstrap").exists()

    history = result.state["execution"]["history"]
    assert history[0] == "NotStarted"
    assert history[-1] == "Marked"
    assert "Failed" not in history


def test_second_run_is_a_no_op(cfg, artifacts, host):
    session = FakeSession(_routes(cfg, artifacts))
    fetcher = Fetcher(session_factory=lambda: session)
    provision(cfg, fetcher=fetcher)

    calls_before = list(session.calls)
    marker_before = (Path(cfg.rootfs_dir) / ".installed").read_bytes()

    result = provision(cfg, fetcher=fetcher)

    assert result.status is BootstrapStatus.ALREADY_PROVISIONED
    assert result.ran_steps == []
    assert session.calls == calls_before
    assert len(host) == 1
    assert (Path(cfg.rootfs_dir) / ".installed").read_bytes() == marker_before
    assert result.marker["arch"] == "x86_64"


def test_existing_marker_skips_everything(cfg, host):
    root = Path(cfg.rootfs_dir)
    root.mkdir(parents=True)
    (root / ".installed").touch()
    session = FakeSession()

    result = provision(cfg, fetcher=Fetcher(session_factory=lambda: session))

    assert result.status is BootstrapStatus.ALREADY_PROVISIONED
    assert session.calls == []
    assert host == []
    assert sorted(p.name for p in root.iterdir()) == [".installed"]
    assert not Path(cfg.tmp_dir).exists()


def test_rootfs_falls_back_to_second_mirror(cfg, artifacts, host):
    routes = _routes(cfg, artifacts)
    primary, fallback = rootfs_urls(cfg, X86)
    routes[fallback] = routes.pop(primary)
    session = FakeSession(routes)

    result = provision(cfg, fetcher=Fetcher(session_factory=lambda: session))

    assert result.state["downloads"]["rootfs"] == fallback
    assert session.calls[:2] == [primary, fallback]


def test_rootfs_unavailable_everywhere_is_fatal(cfg, artifacts, host):
    routes = _routes(cfg, artifacts)
    del routes[rootfs_urls(cfg, X86)[0]]
    session = FakeSession(routes)

    with pytest.raises(FetchError):
        provision(cfg, fetcher=Fetcher(session_factory=lambda: session))

    # exactly one fallback, then give up before touching the tools
    assert session.calls == rootfs_urls(cfg, X86)
    assert not (Path(cfg.rootfs_dir) / ".installed").exists()


def test_apk_tools_404_on_every_mirror_is_fatal(cfg, artifacts, host):
    session = FakeSession(_routes(cfg, artifacts, apk=False))

    with pytest.raises(FetchError) as exc:
        provision(cfg, fetcher=Fetcher(session_factory=lambda: session))

    assert exc.value.status == 404
    for url in apk_tools_urls(cfg, X86):
        assert url in session.calls
    assert not (Path(cfg.rootfs_dir) / ".installed").exists()
    assert host == []


def test_apk_tools_found_on_edge(cfg, artifacts, host):
    routes = _routes(cfg, artifacts, apk=False)
    edge = apk_tools_urls(cfg, X86)[2]
    routes[edge] = FakeResponse(200, artifacts["apk"])
    session = FakeSession(routes)

    result = provision(cfg, fetcher=Fetcher(session_factory=lambda: session))

    assert result.state["downloads"]["apk-tools-static"] == edge


def test_unsupported_architecture_does_no_network_io(cfg, monkeypatch):
    monkeypatch.setattr(
        arch_mod,
        "run_cmd",
        lambda argv, **kw: CmdResult(argv=list(argv), returncode=0, stdout="riscv64\n", stderr=""),
    )
    session = FakeSession()

    with pytest.raises(UnsupportedArchitecture):
        provision(cfg, fetcher=Fetcher(session_factory=lambda: session))

    assert session.calls == []
    assert not (Path(cfg.rootfs_dir) / ".installed").exists()


def test_corrupt_rootfs_is_fatal_and_retried_next_run(cfg, artifacts, host):
    routes = _routes(cfg, artifacts)
    good = routes[rootfs_urls(cfg, X86)[0]]
    routes[rootfs_urls(cfg, X86)[0]] = FakeResponse(200, b"<html>captive portal</html>")
    session = FakeSession(routes)
    fetcher = Fetcher(session_factory=lambda: session)

    with pytest.raises(ExtractError):
        provision(cfg, fetcher=fetcher)
    assert not (Path(cfg.rootfs_dir) / ".installed").exists()

    routes[rootfs_urls(cfg, X86)[0]] = good
    session.routes = routes

    result = provision(cfg, fetcher=fetcher)

    assert result.status is BootstrapStatus.MARKED
    assert result.ran_steps[0] == "10_resolve_arch"
