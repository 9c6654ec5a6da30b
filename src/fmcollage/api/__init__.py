"""fmcollage — FastAPI REST API layer.

This package contains the FastAPI application, Pydantic request models, and
the options persistence helpers.

Modules
-------
main
    FastAPI application with all route handlers.
models
    Pydantic models for API request validation.
options_store
    File-backed persistence of the four last-used options.
"""
