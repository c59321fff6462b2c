#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
nsctl main module entry point.
Enables running nsctl as a module: python -m nsctl
"""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
