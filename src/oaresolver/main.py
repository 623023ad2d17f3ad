from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from .config.config_parser import parse_config_file
from .config.config_schema import OAResolverConfig
from .config.logging_config import init_logging
from .errors import AddressNotFound, ConfigurationError, ResolverUnavailable
from .fetch import RecordFetcher
from .openalias import get_account_address_as_str_from_url, load_txt_records_from_dns
from .records import RecordType
from .resolver import DNSResolver

logger = logging.getLogger("oaresolver.main")


def make_confirm(
    assume_yes: bool,
    *,
    ask: Callable[[str], str] = input,
    out: Callable[[str], None] = print,
) -> Callable[[str, List[str], bool], Optional[str]]:
    """
    Brief: Build the confirmation callback used by the 'resolve' command.

    Inputs:
      - assume_yes: Accept without prompting, but only DNSSEC-valid results.
      - ask: Prompt function returning the user's answer.
      - out: Output function.

    Outputs:
      - Callable(url, addresses, dnssec_valid) -> chosen address or None.

    Notes:
      - With several addresses the first one is offered and the others are
        listed so the user can spot the ambiguity.
    """

    def confirm(url: str, addresses: List[str], dnssec_valid: bool) -> Optional[str]:
        if not dnssec_valid:
            out(f"DNSSEC validation failed or is unavailable for {url}")
            if assume_yes:
                return None
        if len(addresses) > 1:
            out(f"{url} lists {len(addresses)} addresses:")
            for addr in addresses:
                out(f"  {addr}")
        chosen = addresses[0]
        if assume_yes:
            return chosen
        answer = ask(f"Use address {chosen} for {url}? (y/N) ")
        if answer.strip().lower() in ("y", "yes"):
            return chosen
        return None

    return confirm


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resolve OpenAlias addresses over DNSSEC-validated DNS"
    )
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument("--log-level", default=None, help="debug, info, warn, error")
    parser.add_argument(
        "--dns-public",
        default=None,
        help="Forwarder override: 'tcp' or 'tcp://A.B.C.D' (overrides DNS_PUBLIC)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_resolve = sub.add_parser("resolve", help="Resolve an OpenAlias address")
    p_resolve.add_argument("alias")
    p_resolve.add_argument(
        "--yes",
        action="store_true",
        help="Accept without prompting (refused when DNSSEC is not valid)",
    )

    p_records = sub.add_parser(
        "records", help="Load TXT records that agree across several domains"
    )
    p_records.add_argument("domains", nargs="*")

    p_lookup = sub.add_parser("lookup", help="Look up one name")
    p_lookup.add_argument("name")
    p_lookup.add_argument("--type", default="TXT", choices=[t.name for t in RecordType])
    return parser


def _cmd_resolve(args, cfg: OAResolverConfig, resolver: DNSResolver) -> int:
    try:
        chosen = get_account_address_as_str_from_url(
            args.alias, make_confirm(args.yes), resolver, asset=cfg.asset
        )
    except AddressNotFound as e:
        print(str(e), file=sys.stderr)
        return 1
    if not chosen:
        return 1
    print(chosen)
    return 0


def _cmd_records(args, cfg: OAResolverConfig, resolver: DNSResolver) -> int:
    domains = list(args.domains) or list(cfg.update_domains)
    if not domains:
        print("no domains given and none configured in update_domains", file=sys.stderr)
        return 2
    executor = ThreadPoolExecutor(max_workers=cfg.workers) if cfg.workers else None
    try:
        records, ok = load_txt_records_from_dns(domains, resolver, executor)
    finally:
        if executor is not None:
            executor.shutdown(wait=True)
    if not ok:
        print("no two domains returned matching DNSSEC-valid records", file=sys.stderr)
        return 1
    for record in records:
        print(record)
    return 0


def _cmd_lookup(args, cfg: OAResolverConfig, resolver: DNSResolver) -> int:
    result = RecordFetcher(resolver).fetch_one(args.name, RecordType.parse(args.type))
    for record in result.records:
        print(record)
    print(
        f"; dnssec_available={result.dnssec_available} "
        f"dnssec_valid={result.dnssec_valid}"
    )
    return 0 if result.records else 1


_COMMANDS = {
    "resolve": _cmd_resolve,
    "records": _cmd_records,
    "lookup": _cmd_lookup,
}


def main(argv: List[str] | None = None) -> int:
    """
    Command line entry point.

    Inputs:
      - argv: Argument list (defaults to sys.argv[1:]).
    Outputs:
      - int exit code: 0 success, 1 lookup failure or refusal, 2 usage or
        configuration error.

    Example:
      >>> main(["lookup", "example.org", "--type", "A"])  # doctest: +SKIP
    """
    args = _build_parser().parse_args(argv)

    try:
        cfg = parse_config_file(args.config) if args.config else OAResolverConfig()
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    log_cfg = dict(cfg.logging)
    if args.log_level:
        log_cfg["level"] = args.log_level
    log_cfg.setdefault("level", "warn")
    init_logging(log_cfg)
    if args.config:
        logger.info("Loaded config from %s", args.config)

    resolver = DNSResolver(cfg.resolver, dns_public=args.dns_public)
    try:
        return _COMMANDS[args.command](args, cfg, resolver)
    except ResolverUnavailable as exc:
        logger.error("%s", exc)
        return 1
    finally:
        resolver.close()


if __name__ == "__main__":
    raise SystemExit(main())  # pragma: no cover
