from __future__ import annotations

import argparse
import time
from pathlib import Path
from typing import Dict, List, Tuple

import requests

from authmon.io.ndjson import read_ndjson


def post_request(base_url: str, body: Dict, timeout: float = 10.0) -> Tuple[int, Dict]:
    r = requests.post(f"{base_url}/webhook", json=body, timeout=timeout)
    try:
        data = r.json()
    except ValueError:
        data = {"raw": r.text}
    return r.status_code, data


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Replay NDJSON webhook requests against a running service.")
    p.add_argument("--api", default="http://127.0.0.1:8000", help="API base URL")
    p.add_argument("--file", required=True, help="NDJSON file of webhook requests")
    p.add_argument("--delay", type=float, default=0.0, help="Seconds to wait between requests")
    args = p.parse_args(argv)

    path = Path(args.file)
    if not path.exists():
        print(f"File not found: {path}")
        return 1

    sent = failed = 0
    for body in read_ndjson(path):
        try:
            status, data = post_request(args.api, body)
        except requests.RequestException as e:
            print(f"{body.get('event_type')}: request failed: {e}")
            failed += 1
            continue
        sent += 1
        if status >= 400:
            failed += 1
        print(f"{body.get('event_type')}: {status} {data}")
        if args.delay:
            time.sleep(args.delay)

    print(f"Replayed {sent} requests ({failed} failed)")
    return 0 if failed == 0 else 2


if __name__ == "__main__":
    raise SystemExit(main())
