"""
Small helpers for feeding record files through the sink.
"""

from __future__ import annotations

import gzip
import json
from itertools import islice
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Union


def iter_ndjson(path: Union[str, Path]) -> Iterator[dict]:
    """Yield one record per non-blank line; `.gz` files are decompressed on the fly."""
    p = Path(path)
    opener = gzip.open if p.suffix == ".gz" else open
    with opener(p, "rt", encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                yield json.loads(line)
            except ValueError as e:
                raise ValueError(f"{p}:{lineno}: invalid JSON: {e}") from e


def chunked(items: Iterable[Any], size: int) -> Iterator[List[Any]]:
    """Split an iterable into lists of at most `size` items, preserving order."""
    if size <= 0:
        raise ValueError("size must be > 0")
    it = iter(items)
    while True:
        chunk = list(islice(it, size))
        if not chunk:
            return
        yield chunk
