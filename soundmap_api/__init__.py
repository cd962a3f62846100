"""
Top‑level package for the Sound Map API.

This file makes ``soundmap_api`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``soundmap_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
