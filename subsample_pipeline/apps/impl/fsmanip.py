# -*- coding: utf-8 -*-
"""Helper code for file system (directory/file/link) manipulation

The routines in this module check for and create directories, files, and symbolic links while
printing log messages.
"""

import os

from .logging import log, LVL_INFO, LVL_ERROR, LVL_WARNING


def assume_path_existing(path, msg_lvl=LVL_ERROR):
    """Check whether path does exist and is readable, print message if it is not.

    Return ``True`` if it does exist and ``False`` otherwise.

    Switch off messaging by setting msg_lvl to ``None``
    """
    if not os.path.exists(path) or not os.access(path, os.R_OK):
        if msg_lvl:
            log("path {path} does not exist or is not readable", {"path": path}, level=msg_lvl)
        return False
    else:
        return True


def assume_path_nonexisting(path, msg_lvl=LVL_WARNING):
    """Check whether path does exist or not, print message if it does

    Return ``True`` if it does not exist and ``False`` otherwise.  Dangling symbolic links count
    as existing.

    Switch off messaging by setting msg_lvl to ``None``
    """
    if os.path.lexists(path):
        if msg_lvl:
            log("path {path} already exists", {"path": path}, level=msg_lvl)
        return False
    else:
        return True


def create_directory(path, msg_lvl=LVL_INFO, exist_ok=False):
    """Create directory ``path`` including missing parents

    Switch off messaging by setting msg_lvl to ``None``
    """
    if msg_lvl and not os.path.isdir(path):
        log("creating directory {path}", {"path": path}, level=msg_lvl)
    os.makedirs(path, exist_ok=exist_ok)


def create_symlink(src_path, dest_path, msg_lvl=LVL_INFO):
    """Create symbolic link at ``dest_path`` pointing to ``src_path``

    Return ``True`` if the link was created.  An existing path at ``dest_path`` is left alone
    and ``False`` is returned.

    Switch off messaging by setting msg_lvl to ``None``
    """
    if not assume_path_nonexisting(dest_path, msg_lvl=LVL_WARNING if msg_lvl else None):
        return False
    if msg_lvl:
        log("linking {dest} => {src}", {"src": src_path, "dest": dest_path}, level=msg_lvl)
    os.symlink(src_path, dest_path)
    return True
