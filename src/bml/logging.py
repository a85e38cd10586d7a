"""
    Copyright 2024 Inmanta

    Licensed under the Apache License, Version 2.0 (the "License");
    you may not use this file except in compliance with the License.
    You may obtain a copy of the License at

        http://www.apache.org/licenses/LICENSE-2.0

    Unless required by applicable law or agreed to in writing, software
    distributed under the License is distributed on an "AS IS" BASIS,
    WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
    See the License for the specific language governing permissions and
    limitations under the License.

    Contact: code@inmanta.com
"""

import logging
import os
import sys
from typing import Optional, TextIO

import colorlog

ENVIRON_FORCE_TTY = "BML_FORCE_TTY"

LOG_FORMAT = "%(log_color)s%(name)-25s%(levelname)-8s%(reset)s%(blue)s%(message)s"
LOG_FORMAT_NO_COLOR = "%(name)-25s%(levelname)-8s%(message)s"
LOG_COLORS = {"DEBUG": "cyan", "INFO": "green", "WARNING": "yellow", "ERROR": "red", "CRITICAL": "red"}

"""
This dictionary maps the verbosity of the command line to the corresponding Python log levels
"""
log_levels = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


def _is_on_tty(stream: TextIO) -> bool:
    return (hasattr(stream, "isatty") and stream.isatty()) or ENVIRON_FORCE_TTY in os.environ


def convert_verbosity(verbosity: int) -> int:
    """
    Convert the number of -v flags to a python log level. The minimal log level on the CLI is WARNING.
    """
    return log_levels[max(0, min(verbosity, 2))]


def get_formatter(stream: TextIO) -> logging.Formatter:
    if _is_on_tty(stream):
        return colorlog.ColoredFormatter(LOG_FORMAT, log_colors=LOG_COLORS, reset=True)
    return colorlog.ColoredFormatter(LOG_FORMAT_NO_COLOR, no_color=True)


def setup_logging(verbosity: int = 0, stream: Optional[TextIO] = None) -> logging.Handler:
    """
    Send the log of the client to the console. Handlers installed by earlier calls are replaced.

    :param verbosity: The number of times -v was passed on the command line
    :param stream: The stream to log to, stderr by default so the output of commands stays clean
    :return: The installed handler
    """
    if stream is None:
        stream = sys.stderr

    handler = logging.StreamHandler(stream)
    handler.setFormatter(get_formatter(stream))
    handler.set_name("bml_cli")

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == "bml_cli":
            root.removeHandler(existing)
            existing.close()

    root.addHandler(handler)
    root.setLevel(convert_verbosity(verbosity))
    return handler
