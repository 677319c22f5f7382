"""Delivery: write generated files to a directory or pack them into a ZIP archive."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path, PurePosixPath
from typing import Iterable

from flowtest.compiler.types import GeneratedFile
from flowtest.exceptions import DeliveryError

logger = logging.getLogger(__name__)


def _safe_name(filename: str) -> str:
    """Reject names that would land outside the destination."""
    path = PurePosixPath(filename.replace("\\", "/"))
    if not filename or path.is_absolute() or ".." in path.parts:
        raise DeliveryError(f"Refusing to write {filename!r} outside the destination")
    return str(path)


def write_directory(files: Iterable[GeneratedFile], dest: str | Path) -> list[Path]:
    """
    Write each generated file under ``dest`` (created if missing).

    Returns the written paths in input order. Existing files are overwritten.
    """
    root = Path(dest)
    written: list[Path] = []
    try:
        root.mkdir(parents=True, exist_ok=True)
        for generated in files:
            target = root / _safe_name(generated.filename)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(generated.content, encoding="utf-8")
            written.append(target)
    except DeliveryError:
        raise
    except OSError as exc:
        raise DeliveryError(f"Could not write generated files to {root}: {exc}") from exc

    logger.info("Wrote %d generated file(s) to %s", len(written), root)
    return written


def write_archive(files: Iterable[GeneratedFile], dest_zip: str | Path) -> Path:
    """Pack the generated files into a ZIP archive at ``dest_zip``."""
    archive = Path(dest_zip)
    entries = [(_safe_name(generated.filename), generated.content) for generated in files]
    try:
        archive.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, content in entries:
                zf.writestr(name, content)
    except OSError as exc:
        raise DeliveryError(f"Could not write archive {archive}: {exc}") from exc

    logger.info("Packed %d generated file(s) into %s", len(entries), archive)
    return archive
