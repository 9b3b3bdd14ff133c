"""Helpers to remove binaries no metadata document references."""

import asyncio
import logging
import re
import time
from pathlib import Path
from typing import List

from dal.record_store import DOCUMENT_SUFFIX, RECORD_ID_PATTERN

LOGGER = logging.getLogger(__name__)

_BINARY_NAME = re.compile(rf"^(?P<id>{RECORD_ID_PATTERN})_(original|modal|thumb)\.[A-Za-z0-9]+$")


class OrphanCleaner:
    """Delete binaries whose `{id}.md` document does not exist.

    Orphans appear when an ingestion fails between writing its binaries and
    writing its document.
    """

    def __init__(self, images_dir: Path | str, grace_seconds: int = 60) -> None:
        """
        Args:
            images_dir: Directory shared with the record store.
            grace_seconds: Binaries younger than this are kept so an ingestion
                still writing its document is not disturbed.
        """
        self.images_dir = Path(images_dir)
        self.grace_seconds = grace_seconds

    def _find_orphans(self) -> List[Path]:
        if not self.images_dir.is_dir():
            return []
        cutoff = time.time() - self.grace_seconds
        orphans: List[Path] = []
        for path in self.images_dir.iterdir():
            match = _BINARY_NAME.match(path.name)
            if not match or not path.is_file():
                continue
            if (self.images_dir / f"{match.group('id')}{DOCUMENT_SUFFIX}").exists():
                continue
            if path.stat().st_mtime > cutoff:
                continue
            orphans.append(path)
        return orphans

    def _remove(self, paths: List[Path]) -> List[str]:
        removed: List[str] = []
        for path in paths:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            removed.append(path.name)
        return removed

    async def prune_orphans(self) -> List[str]:
        """Delete orphaned binaries and return their filenames."""
        orphans = await asyncio.to_thread(self._find_orphans)
        removed = await asyncio.to_thread(self._remove, orphans)
        if removed:
            LOGGER.info("Removed %d orphaned image files", len(removed))
        return removed
