from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, Iterator


def read_ndjson(path: str | Path) -> Iterator[Dict]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        for n, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{p.name}:{n}: invalid JSON: {e.msg}") from e


def write_ndjson(path: str | Path, items: Iterable[Dict]) -> int:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    n = 0
    with p.open("w", encoding="utf-8") as f:
        for it in items:
            f.write(json.dumps(it, ensure_ascii=False))
            f.write("\n")
            n += 1
    return n
