# -*- coding: utf-8 -*-

__author__ = """Subsample Pipeline Developers"""

from subsample_pipeline._version import __version__

__all__ = ["__version__"]
