from __future__ import annotations

import argparse
import json
import sys
from urllib.parse import quote

import requests

from zkreg.settings import settings


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _seg(value: str) -> str:
    return quote(value, safe="")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="zkreg service registry CLI")
    p.add_argument("--api", default=settings.api_url, help="API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_look = sub.add_parser("lookup", help="Show the endpoints of a service version")
    s_look.add_argument("service")
    s_look.add_argument("version")

    sub.add_parser("describe", help="Dump the whole registry")

    s_add = sub.add_parser("add", help="Add a local endpoint override")
    s_add.add_argument("service")
    s_add.add_argument("version")
    s_add.add_argument("endpoint")

    s_del = sub.add_parser("delete", help="Delete a service, a version or an endpoint locally")
    s_del.add_argument("service")
    s_del.add_argument("version", nargs="?")
    s_del.add_argument("endpoint", nargs="?")

    s_fail = sub.add_parser("failure", help="Report a failing endpoint")
    s_fail.add_argument("service")
    s_fail.add_argument("version")
    s_fail.add_argument("endpoint")
    s_fail.add_argument("error")

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    base = args.api.rstrip("/")

    if args.cmd == "lookup":
        r = requests.get(f"{base}/services/{_seg(args.service)}/{_seg(args.version)}", timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "describe":
        r = requests.get(f"{base}/registry", timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "add":
        r = requests.post(
            f"{base}/services/{_seg(args.service)}/{_seg(args.version)}/endpoints",
            json={"endpoint": args.endpoint},
            timeout=10,
        )
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "delete":
        url = f"{base}/services/{_seg(args.service)}"
        if args.version:
            url += f"/{_seg(args.version)}"
            if args.endpoint:
                url += f"/endpoints/{_seg(args.endpoint)}"
        r = requests.delete(url, timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "failure":
        payload = {
            "service": args.service,
            "version": args.version,
            "endpoint": args.endpoint,
            "error": args.error,
        }
        r = requests.post(f"{base}/failures", json=payload, timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
