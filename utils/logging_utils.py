import logging
import sys
from typing import Optional


class ForcedFlushHandler(logging.FileHandler):
    def emit(self, record):
        super().emit(record)
        self.flush()


def setup_logging(log_file_path: Optional[str] = None, verbose: bool = False):
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file_path:
        handlers.insert(0, ForcedFlushHandler(log_file_path))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
