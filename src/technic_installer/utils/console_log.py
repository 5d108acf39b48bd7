"""Console and file log sink passed to every component as its log callback."""
import sys
import threading
from datetime import datetime

from .symbols import AnsiColors


class ConsoleLog:
    """Callable log sink: log(message, error=False, info=False, warning=False, debug=False, success=False)."""

    LEVEL_COLORS = {
        'error': AnsiColors.RED,
        'warning': AnsiColors.YELLOW,
        'info': AnsiColors.BLUE,
        'debug': AnsiColors.GRAY,
        'success': AnsiColors.GREEN,
        'normal': '',
    }

    def __init__(self, log_file=None, log_level='INFO', stream=None, color=None):
        self.log_file = log_file
        self.log_level = log_level.upper()
        self.stream = stream or sys.stdout
        self.color = self.stream.isatty() if color is None else color
        self._lock = threading.Lock()

    def _format_log_entry(self, message, error=False, info=False, warning=False, debug=False, success=False):
        """Format log entry with timestamp and level prefix.

        Returns:
            tuple: (formatted_entry: str, tag: str)
        """
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        if error:
            prefix, tag = 'ERROR: ', 'error'
        elif warning:
            prefix, tag = 'WARN: ', 'warning'
        elif info:
            prefix, tag = 'INFO: ', 'info'
        elif debug:
            prefix, tag = 'DEBUG: ', 'debug'
        elif success:
            prefix, tag = '', 'success'
        else:
            prefix, tag = '', 'normal'

        return f"[{timestamp}] {prefix}{message}\n", tag

    def _write_log_to_file(self, log_entry):
        if not self.log_file:
            return
        try:
            with open(self.log_file, 'a', encoding='utf-8') as f:
                f.write(log_entry)
        except OSError:
            # Console output still carries the message
            pass

    def __call__(self, message, error=False, info=False, warning=False, debug=False, success=False):
        if debug and self.log_level != 'DEBUG':
            return

        log_entry, tag = self._format_log_entry(message, error=error, info=info, warning=warning,
                                                debug=debug, success=success)
        color = self.LEVEL_COLORS[tag] if self.color else ''
        reset = AnsiColors.RESET if color else ''
        with self._lock:
            self._write_log_to_file(log_entry)
            self.stream.write(f"{color}{message}{reset}\n")
            self.stream.flush()
