"""Mosaic Gallery - FastAPI REST API layer.

Modules
-------
main
    Application factory, route handlers, error handlers and the ``main()``
    CLI entry point.
models
    Pydantic request models.
deps
    Dependencies exposing the repository, like ledger and configuration.
"""
