"""Configuration parsing helpers for oaresolver.

Brief:
  Centralizes:
    - parsing the DNS_PUBLIC forwarder override
    - reading and validating YAML config files

Inputs:
  - Environment mappings, override strings and YAML paths

Outputs:
  - Forwarder address lists and OAResolverConfig instances
"""

from __future__ import annotations

import logging
import os
import re
from typing import List, Mapping, Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from .config_schema import OAResolverConfig

logger = logging.getLogger("oaresolver.config")

DNS_PUBLIC_ENV = "DNS_PUBLIC"

DEFAULT_DNS_PUBLIC_ADDR = (
    "194.150.168.168",  # CCC (Germany)
    "80.67.169.40",  # FDN (France)
    "89.233.43.71",  # censurfridns.dk (Denmark)
    "109.69.8.51",  # puntCAT (Spain)
    "193.58.251.251",  # SkyDNS (Russia)
)

_TCP_ADDR_RE = re.compile(r"tcp://([0-9]+)\.([0-9]+)\.([0-9]+)\.([0-9]+)")


def parse_dns_public(value: str, *, strict: bool = False) -> List[str]:
    """Brief: Parse a DNS_PUBLIC forwarder override.

    Inputs:
      - value: 'tcp' for the built-in public servers, or 'tcp://A.B.C.D' for
        a single IPv4 forwarder.
      - strict: Raise instead of logging when the value is invalid.

    Outputs:
      - list[str]: Forwarder addresses; empty when the value is invalid.

    Raises:
      - ConfigurationError: only when strict is True.

    Example:
      >>> parse_dns_public('tcp://9.9.9.9')
      ['9.9.9.9']
    """

    text = (value or "").strip()
    if text == "tcp":
        addrs = list(DEFAULT_DNS_PUBLIC_ADDR)
        logger.info("Using default public DNS server(s): %s (TCP)", ", ".join(addrs))
        return addrs

    m = _TCP_ADDR_RE.fullmatch(text)
    if m is None:
        msg = f"Invalid {DNS_PUBLIC_ENV} contents {value!r}, ignored"
    else:
        octets = [int(g) for g in m.groups()]
        if all(o <= 255 for o in octets):
            return [".".join(str(o) for o in octets)]
        msg = f"Invalid IP: {value!r}, using default"

    if strict:
        raise ConfigurationError(msg)
    logger.error(msg)
    return []


def dns_public_from_env(environ: Optional[Mapping[str, str]] = None) -> List[str]:
    """Brief: Read DNS_PUBLIC from the environment and parse it.

    Inputs:
      - environ: Optional mapping (defaults to os.environ).

    Outputs:
      - list[str]: Forwarders, empty when unset, blank or invalid.
    """

    env = os.environ if environ is None else environ
    raw = env.get(DNS_PUBLIC_ENV)
    if not raw:
        return []
    addrs = parse_dns_public(raw)
    if not addrs:
        logger.error("Failed to parse %s", DNS_PUBLIC_ENV)
    return addrs


def parse_config_file(config_path: str) -> OAResolverConfig:
    """Brief: Read and validate a YAML configuration file.

    Inputs:
      - config_path: Path to the YAML configuration file.

    Outputs:
      - OAResolverConfig.

    Raises:
      - ConfigurationError: unreadable file, non-mapping root, schema errors
        or an invalid resolver.dns_public value.
    """

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"cannot read {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration root must be a mapping")

    try:
        cfg = OAResolverConfig(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e

    if cfg.resolver.dns_public:
        parse_dns_public(cfg.resolver.dns_public, strict=True)
    return cfg
