"""
Minimal logging context for zonedebrid.
Single place to control all output: styled screen lines + plain log file.
"""
import json
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.text import Text

_PREFIX_STYLES = (
    ("[ERROR]", "red"),
    ("[WARNING]", "yellow"),
    ("[INFO]", "cyan"),
    ("[DEBUG]", "grey50"),
)
_AVAILABLE_RE = re.compile(r"\b(available|débridé|found)\b", re.IGNORECASE)
_UNAVAILABLE_RE = re.compile(r"\b(unavailable|not available|failed)\b", re.IGNORECASE)


class ZoneDebridLogger:
    """Minimal logger: rich to screen, plain text to file, always flush"""

    def __init__(self, log_file: Optional[Path] = None, debug: bool = False):
        self.log_file = log_file
        self._file_handle = None
        self._start_time = datetime.now()
        self.debug_mode = debug
        self._console = Console(highlight=False)
        self._status_width = 0

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(log_file, 'w', buffering=1, encoding='utf-8')

        from zonedebrid.__version__ import __version__

        welcome = f"({self._start_time.strftime('%H:%M:%S')}  Started zonedebrid {__version__})"
        self.log(welcome)

    def _screen_text(self, output: str) -> Text:
        """Style known prefixes and outcome words without parsing rich markup."""
        text = Text(output)
        for prefix, style in _PREFIX_STYLES:
            start = output.find(prefix)
            if start != -1:
                text.stylize(style, start, start + len(prefix))
        for match in _UNAVAILABLE_RE.finditer(output):
            text.stylize("red", match.start(), match.end())
        for match in _AVAILABLE_RE.finditer(output):
            if not any(span.start <= match.start() < span.end for span in text.spans):
                text.stylize("green", match.start(), match.end())
        return text

    def _clear_status(self) -> None:
        if self._status_width:
            print("\r" + " " * self._status_width + "\r", end="", flush=True)
            self._status_width = 0

    def status(self, msg: str):
        """Inline progress line (screen only, overwritten by the next line)"""
        self._clear_status()
        print(f"\r{msg}", end="", flush=True)
        self._status_width = len(msg)

    def log(self, msg: str, prefix: str = ""):
        """Log to screen and file"""
        output = f"{prefix}{msg}" if prefix else msg

        self._clear_status()
        self._console.print(self._screen_text(output))

        if self._file_handle:
            self._file_handle.write(output + "\n")
            self._file_handle.flush()
            os.fsync(self._file_handle.fileno())

    def info(self, msg: str):
        """Info message"""
        self.log(msg)

    def warning(self, msg: str):
        """Warning message"""
        self.log(msg, "[WARNING] ")

    def error(self, msg: str):
        """Error message"""
        self.log(msg, "[ERROR] ")

    def api_retry(self, service: str, attempt: int, delay: float, reason: str = "", max_attempts: Optional[int] = None):
        """Log API retry"""
        limit = f"/{max_attempts}" if max_attempts else ""
        detail = f" ({reason})" if reason else ""
        self.log(f"{service} transient failure{detail}. Retrying in {delay:g}s... (attempt {attempt}{limit})", "[WARNING] ")

    def api_failed(self, service: str, max_attempts: int):
        """Log API failure"""
        self.log(f"{service} still failing after {max_attempts} attempts. Aborting.", "[ERROR] ")

    def debug(self, msg: str):
        """Debug message (only shown in debug mode)"""
        if self.debug_mode:
            timestamp = datetime.now().strftime('%H:%M:%S.%f')[:-3]
            self.log(msg, f"[{timestamp}] [DEBUG] ")

    def api_request(self, method: str, url: str, params: Optional[dict] = None):
        """Log API request (debug mode only)"""
        if self.debug_mode:
            timestamp = datetime.now().strftime('%H:%M:%S.%f')[:-3]
            self.log(f"API Request: {method} {url}", f"[{timestamp}] ")
            if params:
                self.log(f"  Params: {json.dumps(params, indent=2)}", f"[{timestamp}] ")

    def api_response(self, status: int, data: object, elapsed_ms: float):
        """Log API response (debug mode only)"""
        if self.debug_mode:
            timestamp = datetime.now().strftime('%H:%M:%S.%f')[:-3]
            self.log(f"API Response ({elapsed_ms:.0f}ms): Status {status}", f"[{timestamp}] ")
            if data:
                data_str = data if isinstance(data, str) else json.dumps(data, indent=2)
                if len(data_str) > 5000:
                    data_str = data_str[:5000] + "\n  ... (truncated)"
                self.log(f"  Data: {data_str}", f"[{timestamp}] ")

    def close(self):
        """Close file handle with goodbye message"""
        if self._file_handle:
            end_time = datetime.now()
            elapsed = end_time - self._start_time
            goodbye = f"({end_time.strftime('%H:%M:%S')}  Ended session, elapsed {elapsed.total_seconds():.1f}s)"
            self.log(goodbye)
            self._file_handle.close()
            self._file_handle = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


# Global instance (set by the CLI)
_logger: Optional[ZoneDebridLogger] = None


def set_logger(logger: ZoneDebridLogger):
    """Set global logger instance"""
    global _logger
    _logger = logger


def get_logger() -> ZoneDebridLogger:
    """Get global logger instance"""
    global _logger
    if _logger is None:
        # Fallback: create screen-only logger
        _logger = ZoneDebridLogger()
    return _logger


# Convenience functions
def log(msg: str):
    get_logger().log(msg)


def info(msg: str):
    get_logger().info(msg)


def warning(msg: str):
    get_logger().warning(msg)


def error(msg: str):
    get_logger().error(msg)
