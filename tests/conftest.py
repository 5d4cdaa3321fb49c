from __future__ import annotations

import io
import tarfile
from pathlib import Path
from typing import Callable

import pytest


def _crate_bytes(crate_name: str, version: str, files: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for rel_path, text in files.items():
            payload = text.encode("utf-8")
            info = tarfile.TarInfo(f"{crate_name}-{version}/{rel_path}")
            info.size = len(payload)
            archive.addfile(info, io.BytesIO(payload))
    return buffer.getvalue()


@pytest.fixture
def crate_bytes() -> Callable[..., bytes]:
    return _crate_bytes


@pytest.fixture
def make_crate() -> Callable[..., Path]:
    def build(
        cache_root: Path,
        crate_name: str,
        version: str,
        files: dict[str, str],
        dir_name: str | None = None,
    ) -> Path:
        crate_dir = cache_root / (dir_name or crate_name)
        crate_dir.mkdir(parents=True, exist_ok=True)
        archive_path = crate_dir / f"{crate_name}-{version}.crate"
        archive_path.write_bytes(_crate_bytes(crate_name, version, files))
        return archive_path

    return build
