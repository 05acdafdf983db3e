# /src/shared/utils/ids.py
"""
24-character hex object ids.

Layout follows the classic ObjectId shape: 4-byte big-endian creation time,
5 random bytes, 3-byte process-wide counter. Ids sort roughly by creation
time and stay compatible with QR labels printed by the previous system.
"""

from __future__ import annotations

import itertools
import os
import re
import threading
import time

OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")

_RANDOM = os.urandom(5)
_counter = itertools.count(int.from_bytes(os.urandom(3), "big"))
_lock = threading.Lock()


def new_object_id() -> str:
    with _lock:
        seq = next(_counter) & 0xFFFFFF
    ts = int(time.time()) & 0xFFFFFFFF
    return ts.to_bytes(4, "big").hex() + _RANDOM.hex() + seq.to_bytes(3, "big").hex()


def is_object_id(value: str) -> bool:
    return bool(value) and OBJECT_ID_RE.match(value) is not None
