import sys
import logging

from Lessonbook.config import log_level
from Lessonbook.paths import get_log_path


def ensure_logging():
    root = logging.getLogger()
    if root.handlers:
        return  # respect existing setup
    level = log_level()
    log_file = get_log_path()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    file_handler.setFormatter(formatter)

    root.setLevel(level)
    root.addHandler(file_handler)

    # Console only for non-frozen runs
    if not getattr(sys, 'frozen', False):
        stream = sys.__stdout__ if getattr(sys, '__stdout__', None) is not None else sys.stdout
        console_handler = logging.StreamHandler(stream)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
