"""Tests for uastcov.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from uastcov.config import AuditConfig, ConfigError, StaticDriver, load_config


@pytest.fixture(autouse=True)
def _no_token_env(monkeypatch) -> None:
    monkeypatch.delenv("UASTCOV_GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, AuditConfig)
    assert config.root == tmp_path.resolve()
    assert config.clone_root == tmp_path.resolve() / "drivers"
    assert config.sync.concurrency == 3
    assert config.sync.branch == "master"
    assert config.sync.timeout is None
    assert config.registry.organization == "bblfsh"
    assert config.registry.topic == "babelfish-driver"
    assert config.registry.token is None
    assert config.drivers == []
    assert config.catalog == []
    assert config.fixtures.patterns == ["fixtures/*.sem.uast"]
    assert config.code.patterns == ["driver/normalizer/*.go"]
    assert config.report.show_status is False
    assert (config.pprof.host, config.pprof.port) == ("localhost", 6060)


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".uastcov.yml"
    config_file.write_text(
        """
clone_root: cache/drivers
sync:
  concurrency: 5
  branch: main
  timeout: 120
registry:
  url: https://github.example.com/api/v3/
  organization: acme
  token: abc
drivers:
  - language: python
    url: https://github.com/bblfsh/python-driver
catalog: [Identifier, Comment]
fixtures:
  patterns:
    - "fixtures/**/*.sem.uast"
code:
  patterns: ["driver/normalizer/*.go", "driver/*.go"]
report:
  show_status: yes
pprof:
  port: 7070
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.clone_root == tmp_path.resolve() / "cache" / "drivers"
    assert config.sync.concurrency == 5
    assert config.sync.branch == "main"
    assert config.sync.timeout == pytest.approx(120.0)
    assert config.registry.url == "https://github.example.com/api/v3"
    assert config.registry.organization == "acme"
    assert config.registry.topic == "babelfish-driver"
    assert config.registry.token == "abc"
    assert config.drivers == [
        StaticDriver(language="python", url="https://github.com/bblfsh/python-driver")
    ]
    assert config.catalog == ["Identifier", "Comment"]
    assert config.fixtures.patterns == ["fixtures/**/*.sem.uast"]
    assert config.code.patterns == ["driver/normalizer/*.go", "driver/*.go"]
    assert config.report.show_status is True
    assert config.pprof.port == 7070


def test_load_config_reads_token_from_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "from-env")

    assert load_config(tmp_path).registry.token == "from-env"


@pytest.mark.parametrize(
    "content, message",
    [
        ("- just\n- a list\n", "mapping"),
        ("sync:\n  concurrency: 0\n", "concurrency"),
        ("sync:\n  timeout: -1\n", "timeout"),
        ("sync:\n  concurrency: abc\n", "concurrency"),
        ("sync:\n  timeout: soon\n", "timeout"),
        ("pprof:\n  port: 0\n", "pprof.port"),
        ("pprof:\n  port: http\n", "pprof.port"),
        ("drivers:\n  - language: go\n", "drivers\\[0\\]"),
        ("drivers: python\n", "list"),
        ("sync: [unclosed\n", "Failed to parse"),
    ],
)
def test_load_config_rejects_invalid_content(tmp_path: Path, content: str, message: str) -> None:
    (tmp_path / ".uastcov.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError, match=message):
        load_config(tmp_path)
