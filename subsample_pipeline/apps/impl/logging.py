# -*- coding: utf-8 -*-
"""Helper code for logging

All messages go to ``stderr`` so that ``stdout`` stays free for the output of wrapped commands.
"""

import sys

from termcolor import colored


#: Message level: FATAL
LVL_FATAL = "FATAL"

#: Message level: ERROR
LVL_ERROR = "ERROR"

#: Message level: WARNING
LVL_WARNING = "WARNING"

#: Message level: INFO
LVL_INFO = "INFO"

#: Message level: IMPORTANT
LVL_IMPORTANT = "IMPORTANT"

#: Message level: SUCCESS
LVL_SUCCESS = "SUCCESS"

#: Prefix color and attributes for each prefixed level
LEVEL_STYLES = {
    LVL_FATAL: ("red", ["bold", "reverse"]),
    LVL_ERROR: ("red", ["bold"]),
    LVL_WARNING: ("magenta", ["bold"]),
    LVL_INFO: ("yellow", ["bold"]),
    LVL_SUCCESS: ("green", ["bold"]),
}


def log(msg, args=None, level=None, file=None):
    """Print log message for given levels of importance

    For LVL_FATAL, LVL_ERROR, LVL_WARNING, LVL_INFO and LVL_SUCCESS, the message will be prefixed
    with a colored keyword identifying the level.  For IMPORTANT, the message itself will be
    colored.
    """
    file = file or sys.stderr
    args = args or {}
    if level == LVL_IMPORTANT:
        print(colored(msg.format(**args), "yellow"), file=file)
    else:
        if level in LEVEL_STYLES:
            color, attrs = LEVEL_STYLES[level]
            prefix = colored("{}: ".format(level), color, attrs=attrs)
        else:
            prefix = ""
        print(prefix, msg.format(**args), sep="", file=file)
