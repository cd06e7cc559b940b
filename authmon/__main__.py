from __future__ import annotations


def main() -> int:
    print(
        "authmon package. Common commands:\n"
        "  python -m authmon.verify\n"
        "  AUTHMON_AUTH_KEY=... AUTHMON_WEBHOOK_URL=... uvicorn authmon.api.main:app --host 127.0.0.1 --port 8000\n"
        "  python -m authmon.simulate --out data/events.ndjson --severity High\n"
        "  python -m authmon.replay --api http://127.0.0.1:8000 --file data/events.ndjson\n"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
