#!/usr/bin/env python3
r"""
espocrm: send one request to an EspoCRM instance.

Connection settings come from --config / $ESPOCRM_CONFIG and the ESPOCRM_*
environment variables (a .env file is picked up as well).

Usage (example):
  espocrm GET Contact --select name,emailAddress --order-by createdAt --order desc \
    --max-size 20 --where isTrue:doNotCall --where 'in:status:["New","Assigned"]'
  espocrm POST Contact --data '{"firstName": "Ada", "lastName": "Lovelace"}'
  espocrm GET Contact --where equals:name:Acme --dry-run
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

import requests

from espocrm_client.config.app_config import load_config
from espocrm_client.errors import ConfigurationError, EncodingError
from espocrm_client.http.client import Method
from espocrm_client.logging_utils import correlation_scope, setup_logging
from espocrm_client.models.types import FilterType, Order, Params, Value, Where

logger = logging.getLogger("espocrm")


def _parse_value(raw: str) -> Value:
    try:
        return Value.of(json.loads(raw))
    except (ValueError, TypeError):
        # not JSON (or JSON null/float) -> plain text
        return Value.string(raw)


def parse_where(spec: str) -> Where:
    """TYPE:ATTRIBUTE[:VALUE]  e.g. "isTrue:active", "in:status:[\"New\"]" """
    parts = spec.split(":", 2)
    if len(parts) < 2 or not parts[1]:
        raise argparse.ArgumentTypeError(
            f"--where expects TYPE:ATTRIBUTE[:VALUE], got {spec!r}"
        )
    try:
        ftype = FilterType.from_token(parts[0])
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))
    value = _parse_value(parts[2]) if len(parts) == 3 else None
    return Where(ftype, parts[1], value)


def _parse_data(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"--data must be JSON: {e}")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="espocrm", description=__doc__.split("\n")[1])
    ap.add_argument("method", type=str.upper, choices=[m.value for m in Method])
    ap.add_argument("action", help='everything after /api/v1/, e.g. "Contact/<id>"')
    ap.add_argument("--select", help="comma-separated attribute list")
    ap.add_argument("--order-by")
    ap.add_argument("--order", choices=[o.value for o in Order])
    ap.add_argument("--offset", type=int)
    ap.add_argument("--max-size", type=int)
    ap.add_argument("--primary-filter")
    ap.add_argument("--bool-filter", action="append", default=[])
    ap.add_argument("--where", action="append", type=parse_where, default=[])
    ap.add_argument("--data", type=_parse_data, help="JSON body for POST/PUT/DELETE")
    ap.add_argument("--config", help="path to a JSON config file")
    ap.add_argument("--dry-run", action="store_true", help="print the request, do not send")
    ap.add_argument("--verbose", "-v", action="store_true")
    return ap


def params_from_args(args: argparse.Namespace) -> Optional[Params]:
    params = Params()
    if args.select:
        params = params.set_select(args.select)
    if args.order_by:
        params = params.set_order_by(args.order_by)
    if args.order:
        params = params.set_order(Order(args.order))
    if args.offset is not None:
        params = params.set_offset(args.offset)
    if args.bool_filter:
        params = params.set_bool_filter_list(args.bool_filter)
    if args.max_size is not None:
        params = params.set_max_size(args.max_size)
    if args.primary_filter:
        params = params.set_primary_filter(args.primary_filter)
    if args.where:
        params = params.set_where(args.where)
    return None if params == Params() else params.build()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else None)

    with correlation_scope():
        return _run(args)


def _run(args: argparse.Namespace) -> int:
    try:
        client = load_config(args.config).to_client()
        params = params_from_args(args)
        req = client.prepare(args.method, args.action, params=params, payload=args.data)
    except (ConfigurationError, EncodingError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.dry_run:
        print(f"{req.method.value} {req.url}")
        for name in req.headers:
            print(f"  {name}: <set>")
        if req.body is not None:
            print(req.body.decode("utf-8"))
        return 0

    with client:
        try:
            resp = client.send(req)
        except requests.RequestException as e:
            logger.error("request failed: %s", e)
            return 1

    print(resp.status_code)
    print(resp.text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
