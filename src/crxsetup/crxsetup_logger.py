"""
Logger wrapper used across crxsetup.

Every message is emitted as a single JSON line so that per-extension output
stays greppable when several downloads run at once.
"""

import inspect
import json
import logging
from typing import Optional

from pydantic import BaseModel


class LogLine(BaseModel):
    """
    Represents a line in the crxsetup log
    """

    level: str
    caller_file: str
    caller_name: str
    caller_line: int
    message: str


class CrxSetupLogger:
    """
    Logger class
    """

    def __init__(self, name: str = "crxsetup") -> None:
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

    def log(self, debug_message: str, level: int, extension: Optional[str] = None) -> None:
        """
        Log the message as a JSON line at the given level.

        Args:
            debug_message: The message to log
            level: A ``logging`` level constant
            extension: Name of the extension the message is about, if any
        """
        if extension is not None:
            debug_message = f"[{extension}] {debug_message}"
        debug_message = debug_message.replace("\n", " ")

        frame = inspect.currentframe()
        caller = frame.f_back if frame is not None else None
        if caller is not None:
            caller_file = caller.f_code.co_filename.split("/")[-1]
            caller_name = caller.f_code.co_name
            caller_line = caller.f_lineno
        else:
            caller_file, caller_name, caller_line = "", "", 0

        self.logger.log(
            level=level,
            msg=json.dumps(
                LogLine(
                    level=logging.getLevelName(level),
                    caller_file=caller_file,
                    caller_name=caller_name,
                    caller_line=caller_line,
                    message=debug_message,
                ).model_dump()
            ),
        )


def configure_logging(level: int = logging.INFO) -> None:
    """Attach a stderr handler with timestamps to the crxsetup logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    root = logging.getLogger("crxsetup")
    root.handlers = [handler]
    root.setLevel(level)
