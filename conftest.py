"""Shared pytest setup: run Qt headless."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
