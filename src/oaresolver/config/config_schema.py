"""Typed configuration models for oaresolver YAML files."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ResolverSettings(BaseModel):
    """Brief: Settings for the validating resolver adapter.

    Inputs:
      - dns_public: Forwarder override in DNS_PUBLIC syntax ('tcp' or
        'tcp://A.B.C.D'). Takes precedence over the environment when set.
      - port: Nameserver port.
      - timeout_ms: Per-exchange socket timeout in milliseconds.
      - do_udp / do_tcp: Transport policy; UDP is off and TCP on by default.
      - trust_anchors: Extra DS trust anchors in presentation form, installed
        after the built-in root anchor.

    Outputs:
      - ResolverSettings instance with normalized field types.
    """

    dns_public: Optional[str] = None
    port: int = Field(default=53, ge=1, le=65535)
    timeout_ms: int = Field(default=2000, ge=1)
    do_udp: bool = False
    do_tcp: bool = True
    trust_anchors: List[str] = Field(default_factory=list)

    class Config:
        extra = "forbid"


class OAResolverConfig(BaseModel):
    """Brief: Root configuration model.

    Inputs:
      - resolver: ResolverSettings mapping.
      - logging: Mapping passed to init_logging().
      - update_domains: Domains whose TXT records must agree for the
        'records' command when none are given on the command line.
      - asset: OpenAlias asset tag searched for in TXT records ('xmr').
      - workers: Thread pool size for parallel fetches (None = default).

    Outputs:
      - OAResolverConfig instance.
    """

    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    logging: Dict[str, Any] = Field(default_factory=dict)
    update_domains: List[str] = Field(default_factory=list)
    asset: str = "xmr"
    workers: Optional[int] = Field(default=None, ge=1)

    class Config:
        extra = "forbid"
