"""Readers and writers for the IDX binary format used by MNIST and EMNIST.

Image files start with the big-endian header ``(2051, count, rows, cols)``
followed by ``count * rows * cols`` unsigned bytes; label files start with
``(2049, count)`` followed by one unsigned byte per label.  Paths ending in
``.gz`` are transparently decompressed.
"""

from __future__ import annotations

import gzip
import struct
from pathlib import Path
from typing import BinaryIO, Tuple

import numpy as np

from ..core.types import DTYPE, Array
from .dataset import DataSet

IMAGE_MAGIC = 2051
LABEL_MAGIC = 2049


class IdxFormatError(ValueError):
    """Raised when a file does not follow the IDX layout."""


def _open(path: Path, mode: str = "rb") -> BinaryIO:
    if path.suffix == ".gz":
        return gzip.open(path, mode)  # type: ignore[return-value]
    return path.open(mode)


def _read_header(handle: BinaryIO, fields: int, path: Path) -> Tuple[int, ...]:
    raw = handle.read(4 * fields)
    if len(raw) != 4 * fields:
        raise IdxFormatError(f"Truncated header in {path.name}")
    return struct.unpack(f">{fields}i", raw)


def _check_limit(limit: int | None, count: int) -> int:
    if limit is None:
        return count
    if limit < 0:
        raise ValueError("The number of matches in the dataset must be positive.")
    if limit > count:
        raise ValueError("The number of matches given exceeds the number of elements in the file.")
    return limit


def read_images(path: str | Path, limit: int | None = None) -> Tuple[Array, int, int]:
    """Return ``(pixels, rows, cols)`` with pixels scaled to ``[0, 1]``.

    ``pixels`` has shape ``(count, rows * cols)``.
    """

    path = Path(path)
    with _open(path) as handle:
        magic, count = _read_header(handle, 2, path)
        if magic != IMAGE_MAGIC:
            raise IdxFormatError(f"Unknown file format for: {path.name}.")
        rows, cols = _read_header(handle, 2, path)
        count = _check_limit(limit, count)
        size = count * rows * cols
        payload = handle.read(size)
    if len(payload) != size:
        raise IdxFormatError(f"{path.name} holds fewer than {count} images")
    pixels = np.frombuffer(payload, dtype=np.uint8).reshape(count, rows * cols)
    return pixels.astype(DTYPE) / DTYPE(255.0), rows, cols


def read_labels(path: str | Path, limit: int | None = None) -> Array:
    path = Path(path)
    with _open(path) as handle:
        magic, count = _read_header(handle, 2, path)
        if magic != LABEL_MAGIC:
            raise IdxFormatError(f"Unknown file format for: {path.name}.")
        count = _check_limit(limit, count)
        payload = handle.read(count)
    if len(payload) != count:
        raise IdxFormatError(f"{path.name} holds fewer than {count} labels")
    return np.frombuffer(payload, dtype=np.uint8).astype(np.int64)


def _count(path: Path, magic: int) -> int:
    with _open(path) as handle:
        found, count = _read_header(handle, 2, path)
    if found != magic:
        raise IdxFormatError(f"Unknown file format for: {path.name}.")
    return count


def read_dataset(
    image_path: str | Path,
    label_path: str | Path | None = None,
    *,
    limit: int | None = None,
    label_offset: int = 0,
) -> DataSet:
    """Decode an image file (and optionally its label file) into a DataSet.

    ``label_offset`` is subtracted from every label, e.g. ``1`` for EMNIST
    letters whose classes start at one.
    """

    image_path = Path(image_path)
    if label_path is not None:
        label_path = Path(label_path)
        n_images = _count(image_path, IMAGE_MAGIC)
        n_labels = _count(label_path, LABEL_MAGIC)
        if n_images != n_labels:
            raise IdxFormatError(
                f"File {image_path.name} and file {label_path.name} contain data "
                "for a different number of images."
            )
    pixels, rows, cols = read_images(image_path, limit)
    labels = None
    if label_path is not None:
        labels = read_labels(label_path, limit) - int(label_offset)
    return DataSet.from_arrays(pixels, labels, width=rows, height=cols)


def write_images(path: str | Path, images: Array) -> Path:
    """Write a ``(count, rows, cols)`` uint8 array as an IDX image file."""

    path = Path(path)
    images = np.asarray(images, dtype=np.uint8)
    if images.ndim != 3:
        raise ValueError(f"images must be 3-D, got shape {images.shape}")
    path.parent.mkdir(parents=True, exist_ok=True)
    with _open(path, "wb") as handle:
        handle.write(struct.pack(">4i", IMAGE_MAGIC, *images.shape))
        handle.write(images.tobytes())
    return path


def write_labels(path: str | Path, labels: Array) -> Path:
    path = Path(path)
    labels = np.asarray(labels, dtype=np.uint8).reshape(-1)
    path.parent.mkdir(parents=True, exist_ok=True)
    with _open(path, "wb") as handle:
        handle.write(struct.pack(">2i", LABEL_MAGIC, labels.shape[0]))
        handle.write(labels.tobytes())
    return path


__all__ = [
    "IMAGE_MAGIC",
    "LABEL_MAGIC",
    "IdxFormatError",
    "read_dataset",
    "read_images",
    "read_labels",
    "write_images",
    "write_labels",
]
