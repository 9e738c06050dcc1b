from __future__ import annotations

import io

import pytest

from harbor_installer import main as main_mod
from harbor_installer.config import InstallerConfig
from harbor_installer.errors import FetchError, HandoffError
from harbor_installer.main import BootstrapResult, main
from harbor_installer.motd import render_banner, show_banner
from harbor_installer.pipeline import BootstrapStatus


@pytest.fixture
def calls(monkeypatch):
    seen = {"provision": [], "handoff": []}

    def fake_provision(cfg, **kwargs):
        seen["provision"].append(cfg)
        return BootstrapResult(BootstrapStatus.MARKED, {}, [], {})

    def fake_handoff(cfg, strategies=None):
        seen["handoff"].append(cfg)
        return 42

    monkeypatch.setattr(main_mod, "provision", fake_provision)
    monkeypatch.setattr(main_mod, "handoff", fake_handoff)
    return seen


def _argv(tmp_path, *extra):
    return [
        "--rootfs",
        str(tmp_path / "container"),
        "--tmp-dir",
        str(tmp_path / "tmp"),
        "--log",
        str(tmp_path / "harbor.log"),
        "--no-banner",
        *extra,
    ]


def test_exit_code_is_handoff_exit_code(tmp_path, calls):
    assert main(_argv(tmp_path, "--timeout", "30")) == 42

    cfg = calls["provision"][0]
    assert cfg.rootfs_dir == str(tmp_path / "container")
    assert cfg.tmp_dir == str(tmp_path / "tmp")
    assert cfg.fetch_timeout_s == 30.0
    assert cfg.show_banner is False
    assert calls["handoff"] == [cfg]


def test_fatal_bootstrap_error_exits_1_without_handoff(tmp_path, calls, monkeypatch):
    def failing(cfg, **kwargs):
        raise FetchError(["https://example/rootfs.tar.gz"], "/tmp/rootfs.tar.gz", status=404)

    monkeypatch.setattr(main_mod, "provision", failing)

    assert main(_argv(tmp_path)) == 1
    assert calls["handoff"] == []


def test_unexpected_error_exits_1(tmp_path, calls, monkeypatch):
    def failing(cfg, **kwargs):
        raise OSError("No space left on device")

    monkeypatch.setattr(main_mod, "provision", failing)

    assert main(_argv(tmp_path)) == 1
    assert calls["handoff"] == []


def test_handoff_failure_exits_1(tmp_path, calls, monkeypatch):
    def failing(cfg, strategies=None):
        raise HandoffError("nothing to run")

    monkeypatch.setattr(main_mod, "handoff", failing)

    assert main(_argv(tmp_path)) == 1


def test_bad_config_exits_1(tmp_path, calls):
    bad = tmp_path / "harbor.yaml"
    bad.write_text("nope: 1\n")

    assert main(_argv(tmp_path, "--config", str(bad))) == 1
    assert calls["provision"] == []


def test_banner_names_alpine_release(tmp_path):
    root = tmp_path / "container"
    (root / "etc").mkdir(parents=True)
    (root / "etc/os-release").write_text('NAME="Alpine Linux"\nPRETTY_NAME="Alpine Linux v3.18"\n')
    cfg = InstallerConfig(rootfs_dir=str(root))

    text = render_banner(cfg)

    assert "Current Alpine release: Alpine Linux v3.18" in text
    assert "apk add [package]" in text


def test_banner_falls_back_to_configured_version(tmp_path):
    out = io.StringIO()

    show_banner(InstallerConfig(rootfs_dir=str(tmp_path / "missing")), stream=out)

    assert "Current Alpine release: Alpine Linux 3.18.3" in out.getvalue()
    assert "\033[2J" not in out.getvalue()


def test_log_defaults_into_configured_tmp_dir(tmp_path, calls, monkeypatch):
    seen = []
    monkeypatch.setattr(main_mod, "configure_logging", lambda log_path, level: seen.append(log_path))
    scratch = tmp_path / "scratch"

    main(["--rootfs", str(tmp_path / "container"), "--tmp-dir", str(scratch), "--no-banner"])

    assert seen == [str(scratch / "harbor-installer.log")]


def test_explicit_log_path_wins(tmp_path, calls, monkeypatch):
    seen = []
    monkeypatch.setattr(main_mod, "configure_logging", lambda log_path, level: seen.append(log_path))

    main(_argv(tmp_path))

    assert seen == [str(tmp_path / "harbor.log")]
