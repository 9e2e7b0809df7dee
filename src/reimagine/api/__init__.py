"""Reimagine — FastAPI REST API layer.

This package contains the FastAPI application, Pydantic request/response
models, prompt composition, and the orchestration pipelines that sequence
calls to the inference gateway.

Modules
-------
main
    FastAPI application, request routing, CORS handling, and the ``main()``
    CLI entry point.
models
    Pydantic models for API request and response validation.
prompt_builder
    Style templates and prompt composition helpers.
workflows
    Analyze, generate, and transform pipelines.
errors
    Error taxonomy and JSON exception handlers.
"""
