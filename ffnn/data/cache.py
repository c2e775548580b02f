"""Local store for the IDX files behind the image datasets.

Files live under :func:`default_cache_dir`.  Every resolution (downloaded,
reused, or generated as an offline fixture) is written to ``manifest.json``
together with its SHA-256 digest and size, so a run manifest can state exactly
which bytes a network was trained on.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
_CHUNK = 1 << 16

FixtureBuilder = Callable[[Path], None]


def default_cache_dir() -> Path:
    return Path(os.environ.get("FFNN_CACHE_DIR") or Path.home() / ".cache" / "ffnn")


def offline_default() -> bool:
    """``FFNN_DATA_OFFLINE=1`` (the default) keeps every dataset on fixtures."""

    return str(os.environ.get("FFNN_DATA_OFFLINE", "1")) == "1"


class CacheError(RuntimeError):
    """Raised when neither a download nor a fixture yields the requested file."""


def file_digest(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for block in iter(lambda: handle.read(_CHUNK), b""):
            digest.update(block)
    return digest.hexdigest()


@dataclass
class CacheManifest:
    """Index of resolved dataset files, keyed like ``"mnist:train_images"``.

    An unreadable index is treated as empty and rewritten on the next
    :meth:`record`.
    """

    cache_dir: Path = field(default_factory=default_cache_dir)
    entries: Dict[str, Mapping[str, object]] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        self.cache_dir = Path(self.cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.cache_dir / MANIFEST_NAME
        if not self.path.exists():
            return
        try:
            self.entries = json.loads(self.path.read_text())
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt dataset index %s", self.path)

    def record(self, key: str, entry: Mapping[str, object]) -> Mapping[str, object]:
        stamped = {"recorded_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()), **entry}
        self.entries[key] = stamped
        self.path.write_text(json.dumps(self.entries, indent=2, sort_keys=True))
        return stamped

    def get(self, key: str) -> Mapping[str, object] | None:
        return self.entries.get(key)


def fetch(
    name: str,
    url: str,
    *,
    offline_path: Path,
    offline_builder: FixtureBuilder | None = None,
    filename: str | None = None,
    offline: bool | None = None,
    mirrors: Iterable[str] | None = None,
    retries: int = 2,
    cache_dir: str | Path | None = None,
    manifest: CacheManifest | None = None,
) -> tuple[Path, Mapping[str, object]]:
    """Resolve one dataset file to a local path and record where it came from.

    Offline, the fixture at ``offline_path`` is used (generated by
    ``offline_builder`` on first use) and its mode is ``"offline"``.  Online,
    a previously downloaded copy is reused (``"cache"``), otherwise ``url``
    and then each mirror is attempted ``retries + 1`` times (``"download"``).
    If every attempt fails the fixture is used instead (``"offline-fallback"``).
    """

    root = Path(cache_dir) if cache_dir is not None else default_cache_dir()
    manifest = manifest or CacheManifest(root)
    if offline is None:
        offline = offline_default()

    def _resolved(path: Path, source: str, mode: str):
        return path, manifest.record(name, _entry(name, source, path, mode))

    if offline:
        return _resolved(_build_fixture(offline_path, offline_builder), url, "offline")

    target = root / (filename or Path(url).name)
    if target.exists():
        return _resolved(target, url, "cache")

    failure: OSError | None = None
    for source in (url, *(mirrors or ())):
        for attempt in range(1, retries + 2):
            try:
                _download(source, target)
            except OSError as exc:
                failure = exc
                logger.warning("Fetching %s failed on attempt %d: %s", source, attempt, exc)
                time.sleep(min(2 ** (attempt - 1), 5))
            else:
                logger.info("Downloaded %s to %s", source, target)
                return _resolved(target, source, "download")
        target.unlink(missing_ok=True)

    logger.warning("Using the offline fixture for %s after download errors: %s", name, failure)
    return _resolved(_build_fixture(offline_path, offline_builder), url, "offline-fallback")


def _download(url: str, target: Path) -> None:
    import urllib.request

    target.parent.mkdir(parents=True, exist_ok=True)
    with urllib.request.urlopen(url) as response, target.open("wb") as handle:
        for block in iter(lambda: response.read(_CHUNK), b""):
            handle.write(block)


def _build_fixture(path: Path, builder: FixtureBuilder | None) -> Path:
    path = Path(path)
    if not path.exists() and builder is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        builder(path)
        logger.debug("Generated offline fixture %s", path)
    if not path.exists():
        raise CacheError(f"No offline fixture at {path} and no way to build one")
    return path


def _entry(name: str, source: str, path: Path, mode: str) -> Mapping[str, object]:
    return {
        "name": name,
        "url": source,
        "local_path": str(path),
        "checksum": file_digest(path),
        "size_bytes": path.stat().st_size,
        "mode": mode,
    }


__all__ = [
    "CacheError",
    "CacheManifest",
    "default_cache_dir",
    "fetch",
    "file_digest",
    "offline_default",
]
