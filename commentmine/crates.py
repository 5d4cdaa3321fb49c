"""Locating, fetching and unpacking `.crate` archives from a local cache."""

from __future__ import annotations

import logging
import re
import shutil
import tarfile
from pathlib import Path

import httpx

from .config import ExtractorConfig
from .errors import CrateUnavailable

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".crate"
_VERSION_RE = re.compile(r"-(?P<version>\d+\.\d+\.\d+[0-9A-Za-z.+\-]*)$")


def split_crate_dir(crate_dir: str) -> tuple[str, str] | None:
    """Split ``serde_json-1.0.120`` into ``("serde_json", "1.0.120")``."""
    match = _VERSION_RE.search(crate_dir)
    if match is None:
        return None
    return crate_dir[: match.start()], match.group("version")


class CrateCache:
    """A directory of ``<crate>/<crate>-<version>.crate`` archives."""

    def __init__(self, cache_root: str | Path, config: ExtractorConfig | None = None) -> None:
        self.cache_root = Path(cache_root)
        self.config = config or ExtractorConfig()

    def locate(self, crate_name: str) -> tuple[str, Path] | None:
        """Return the cache directory for a crate, trying the hyphenated name too."""
        candidates = [crate_name]
        hyphenated = crate_name.replace("_", "-")
        if hyphenated != crate_name:
            candidates.append(hyphenated)
        for name in candidates:
            path = self.cache_root / name
            if path.is_dir():
                return name, path
        return None

    def find_archive(self, crate_dir: Path) -> Path | None:
        try:
            entries = sorted(crate_dir.iterdir())
        except OSError as exc:
            raise CrateUnavailable(crate_dir.name, f"cannot read dir {crate_dir}: {exc}") from exc
        for entry in entries:
            if entry.is_file() and entry.suffix.lower() == ARCHIVE_SUFFIX:
                return entry
        return None

    def download(self, crate_name: str, version: str) -> Path:
        """Fetch ``<crate>-<version>.crate`` from the registry into the cache."""
        base_url = self.config.registry_url.rstrip("/")
        url = f"{base_url}/{crate_name}/{crate_name}-{version}{ARCHIVE_SUFFIX}"
        try:
            response = httpx.get(url, timeout=self.config.timeout_seconds, follow_redirects=True)
        except httpx.RequestError as exc:
            raise CrateUnavailable(crate_name, f"failed to reach {url}: {exc}") from exc
        if response.status_code != 200:
            raise CrateUnavailable(
                crate_name, f"failed to download {url} (status {response.status_code})"
            )

        target_dir = self.cache_root / crate_name
        target_dir.mkdir(parents=True, exist_ok=True)
        archive_path = target_dir / f"{crate_name}-{version}{ARCHIVE_SUFFIX}"
        archive_path.write_bytes(response.content)
        logger.info("Downloaded %s to %s", url, archive_path)
        return archive_path

    def unpack(self, crate_name: str, crate_dir_hint: str | None = None) -> tuple[str, Path]:
        """Unpack a crate archive next to itself and return ``(name, extracted_root)``.

        ``crate_dir_hint`` is the ``<crate>-<version>`` directory taken from a
        registry path; it is only used to download a missing archive.
        """
        located = self.locate(crate_name)
        if located is None:
            located = self._download_missing(crate_name, crate_dir_hint)
        name, crate_dir = located

        archive_path = self.find_archive(crate_dir)
        if archive_path is None:
            raise CrateUnavailable(name, f"cannot find any crate archive in {crate_dir}")

        try:
            with tarfile.open(archive_path, "r:gz") as archive:
                if hasattr(tarfile, "data_filter"):
                    archive.extractall(crate_dir, filter="data")
                else:  # pragma: no cover - interpreters without extraction filters
                    archive.extractall(crate_dir)
        except (tarfile.TarError, OSError) as exc:
            raise CrateUnavailable(name, f"failed to unzip {archive_path}: {exc}") from exc

        extracted_root = crate_dir / archive_path.stem
        logger.info("Unpacked %s to %s", archive_path, crate_dir)
        return name, extracted_root

    def _download_missing(self, crate_name: str, crate_dir_hint: str | None) -> tuple[str, Path]:
        if not self.config.download_missing:
            raise CrateUnavailable(crate_name, f"cannot find target crate path in {self.cache_root}")
        split = split_crate_dir(crate_dir_hint) if crate_dir_hint else None
        if split is None:
            raise CrateUnavailable(crate_name, "no version known to download the crate")
        name, version = split
        archive_path = self.download(name, version)
        return name, archive_path.parent

    def cleanup(self, root: str | Path | None) -> bool:
        if not root:
            return False
        path = Path(root)
        if not path.exists():
            logger.info("The dir does not exist %s", path)
            return False
        try:
            shutil.rmtree(path)
        except OSError as exc:
            logger.warning("Failed to delete %s: %s", path, exc)
            return False
        logger.info("Deleted %s", path)
        return True
