# -*- coding: utf-8 -*-
"""Willard local persistence: tasks, daily progress, completion logs and settings."""

__version__ = "0.1.0"
