# -*- coding: utf-8 -*-
"""Implementation helpers for the command line applications"""
