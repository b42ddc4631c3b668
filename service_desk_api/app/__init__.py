"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  The project is organised into layers: ``core`` holds
configuration, logging and the error taxonomy, ``schemas`` the
pydantic models, ``services`` the business logic (query engine,
lifecycle rules, slip numbering and slip rendering) and ``api`` the
versioned HTTP routes.
"""

from .main import app  # noqa: F401
