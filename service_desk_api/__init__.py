"""
Top‑level package for the Service Desk API.

This file makes ``service_desk_api`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``service_desk_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
