"""
Binary point cache.

A cache file is a flat run of 16-byte records: little-endian float64 ``x``
followed by little-endian float64 ``y``. A trailing partial record is ignored.
"""

from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, Union

import numpy as np
import structlog

from .points import Point

logger = structlog.get_logger()

RECORD_DTYPE = np.dtype("<f8")
RECORD_SIZE = 2 * RECORD_DTYPE.itemsize
# Records decoded per read
CHUNK_RECORDS = 4096


def points_cache_path(data_path: Union[str, Path], width: int, height: int,
                      density: int) -> Path:
    """Cache file location keyed by the generation parameters."""
    return Path(data_path) / f"points_{width}x{height}x{density}.dat"


def write_points(stream: BinaryIO, points: Iterable[Point]) -> int:
    """
    Write points to ``stream``.

    Returns:
        Number of records written
    """
    count = 0
    for point in points:
        stream.write(np.array([point[0], point[1]], dtype=RECORD_DTYPE).tobytes())
        count += 1
    return count


def read_points(stream: BinaryIO) -> Iterator[Point]:
    """Yield points from ``stream`` until fewer than 16 bytes remain."""
    pending = b""
    while True:
        chunk = stream.read(CHUNK_RECORDS * RECORD_SIZE)
        if not chunk:
            break
        data = pending + chunk
        usable = len(data) - len(data) % RECORD_SIZE
        pending = data[usable:]

        coords = np.frombuffer(data[:usable], dtype=RECORD_DTYPE).reshape(-1, 2)
        for x, y in coords:
            yield Point(float(x), float(y))

    if pending:
        logger.warning("Dropping partial trailing point record", bytes=len(pending))


def load_points(path: Union[str, Path]) -> list:
    """Read an entire cache file."""
    with open(path, "rb") as f:
        return list(read_points(f))


def save_points(path: Union[str, Path], points: Iterable[Point]) -> int:
    """Write ``points`` to a new cache file, returning the record count."""
    with open(path, "wb") as f:
        count = write_points(f, points)
    logger.info("Point cache written", path=str(path), points=count)
    return count
