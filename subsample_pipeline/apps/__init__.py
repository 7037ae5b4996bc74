# -*- coding: utf-8 -*-
"""Command line applications"""
