# -*- coding: utf-8 -*-
"""Stand-alone command line tools"""
