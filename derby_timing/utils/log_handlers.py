"""Logging handlers shared by the command-line entry points."""

import logging
from collections import deque


class CappedFileHandler(logging.FileHandler):
    """A FileHandler that keeps only the last N lines of logs."""
    def __init__(self, filename, max_lines=200, mode="a", encoding="utf-8"):
        super().__init__(filename, mode=mode, encoding=encoding)
        self.max_lines = max_lines
        self._buffer = deque(maxlen=max_lines)

    def emit(self, record):
        msg = self.format(record)
        self._buffer.append(msg + "\n")
        # Flush buffer to file every 10 lines or on error
        if len(self._buffer) % 10 == 0 or record.levelno >= logging.ERROR:
            self._write_buffer()

    def flush(self):
        self.acquire()
        try:
            self._write_buffer()
        finally:
            self.release()

    def close(self):
        self.flush()
        super().close()

    def _write_buffer(self):
        if not self._buffer:
            return
        with open(self.baseFilename, "w", encoding=self.encoding) as f:
            f.writelines(self._buffer)
