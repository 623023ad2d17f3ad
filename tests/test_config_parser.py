"""Brief: Tests for DNS_PUBLIC parsing and YAML config loading.

Inputs:
  - None

Outputs:
  - None (pytest assertions)
"""

import logging

import pytest

from oaresolver.config.config_parser import (
    DEFAULT_DNS_PUBLIC_ADDR,
    dns_public_from_env,
    parse_config_file,
    parse_dns_public,
)
from oaresolver.errors import ConfigurationError


def test_parse_dns_public_tcp_returns_default_list():
    assert parse_dns_public("tcp") == list(DEFAULT_DNS_PUBLIC_ADDR)
    assert parse_dns_public("tcp") == [
        "194.150.168.168",
        "80.67.169.40",
        "89.233.43.71",
        "109.69.8.51",
        "193.58.251.251",
    ]


def test_parse_dns_public_single_address():
    assert parse_dns_public("tcp://8.8.4.4") == ["8.8.4.4"]
    assert parse_dns_public("tcp://0.0.0.0") == ["0.0.0.0"]
    assert parse_dns_public("tcp://255.255.255.255") == ["255.255.255.255"]


@pytest.mark.parametrize(
    "value",
    [
        "udp",
        "TCP",
        "tcp://256.1.1.1",
        "tcp://1.2.3",
        "tcp://1.2.3.4x",
        "tcp://1.2.3.4:53",
        "tcp://a.b.c.d",
        "tcp://\u0661\u0662\u0667.0.0.1",
        "",
    ],
)
def test_parse_dns_public_invalid_values_ignored(value, caplog):
    caplog.set_level(logging.ERROR, logger="oaresolver.config")
    assert parse_dns_public(value) == []
    assert caplog.records


def test_parse_dns_public_strict_raises():
    with pytest.raises(ConfigurationError):
        parse_dns_public("tcp://999.1.1.1", strict=True)


def test_dns_public_from_env():
    assert dns_public_from_env({}) == []
    assert dns_public_from_env({"DNS_PUBLIC": ""}) == []
    assert dns_public_from_env({"DNS_PUBLIC": "tcp://1.1.1.1"}) == ["1.1.1.1"]
    assert dns_public_from_env({"DNS_PUBLIC": "bogus"}) == []


def test_dns_public_from_env_defaults_to_os_environ(monkeypatch):
    monkeypatch.setenv("DNS_PUBLIC", "tcp://9.9.9.9")
    assert dns_public_from_env() == ["9.9.9.9"]


def test_parse_config_file_full(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        """
resolver:
  dns_public: tcp
  timeout_ms: 3500
  trust_anchors:
    - ". IN DS 12345 8 2 AAAA"
logging:
  level: debug
update_domains:
  - updates.a.example
  - updates.b.example
asset: wazn
workers: 4
""",
        encoding="utf-8",
    )
    cfg = parse_config_file(str(path))
    assert cfg.resolver.dns_public == "tcp"
    assert cfg.resolver.timeout_ms == 3500
    assert cfg.resolver.do_udp is False
    assert cfg.resolver.do_tcp is True
    assert cfg.resolver.port == 53
    assert cfg.logging == {"level": "debug"}
    assert cfg.update_domains == ["updates.a.example", "updates.b.example"]
    assert cfg.asset == "wazn"
    assert cfg.workers == 4


def test_parse_config_file_empty_uses_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    cfg = parse_config_file(str(path))
    assert cfg.resolver.dns_public is None
    assert cfg.update_domains == []
    assert cfg.asset == "xmr"


@pytest.mark.parametrize(
    "body",
    [
        "- just\n- a list\n",
        "resolver:\n  port: 70000\n",
        "resolver:\n  dns_public: udp\n",
        "unknown_key: 1\n",
        "resolver: [unclosed\n",
    ],
)
def test_parse_config_file_errors(tmp_path, body):
    path = tmp_path / "config.yaml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        parse_config_file(str(path))


def test_parse_config_file_missing(tmp_path):
    with pytest.raises(ConfigurationError):
        parse_config_file(str(tmp_path / "missing.yaml"))
