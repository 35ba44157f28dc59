#!/usr/bin/env python3
"""
Policy Bootstrap entry point for ``python -m policy_bootstrap``.
"""

import sys

from .libs.main_app import main

if __name__ == "__main__":
    sys.exit(main())
