#!/usr/bin/env python3
"""Convenience runner for the G-Remind navigation tools.

Usage:
    python run.py replay --origin 37.4220,-122.0840 --destination 37.4300,-122.0900 --trace trace.json
"""
import logging
import sys

from gremind.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )
    sys.exit(main())
