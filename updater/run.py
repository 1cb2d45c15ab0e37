"""
Update service - downloads each reference file in order, stopping at the first failure
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from .config import UpdaterConfig
from .net.fetcher import Fetcher, FetchError
from .sources import TARGETS, DownloadTarget
from .util.bytes import format_bytes

logger = logging.getLogger(__name__)


class UpdateService:
    """Runs the sequential download of all reference data files"""

    def __init__(self, config: UpdaterConfig, fetcher: Optional[Fetcher] = None,
                 targets: Sequence[DownloadTarget] = TARGETS):
        self.config = config
        self.targets = tuple(targets)
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or Fetcher(config)

        self.results: List[Dict[str, Any]] = []
        self.failed_target: Optional[DownloadTarget] = None

    def run(self) -> int:
        """
        Fetch every target into the output directory.

        Returns:
            0 when all files were updated, 1 when a fetch failed
        """
        start_time = time.time()
        output_dir = self.config.output_path
        logger.info(f"Updating {len(self.targets)} files in {output_dir.resolve()}")

        try:
            for target in self.targets:
                print(f"* updating {target.label}")
                try:
                    result = self.fetcher.fetch(target.url, output_dir / target.filename)
                except FetchError as e:
                    print("! failed")
                    logger.error(f"Failed to update {target.filename}: {e.reason}")
                    self.failed_target = target
                    return 1
                self.results.append(result)
        finally:
            logger.info(f"Fetcher stats: {self.fetcher.get_stats()}")
            if self._owns_fetcher:
                self.fetcher.close()

        total_bytes = sum(r["bytes"] for r in self.results)
        logger.info(
            f"Updated {len(self.results)} files ({format_bytes(total_bytes)}) "
            f"in {time.time() - start_time:.1f}s"
        )
        return 0
