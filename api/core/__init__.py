"""
Shared, cross-cutting code for the API.

`core/` holds the small building blocks every feature uses (DB wiring,
settings, logging, error types). Keep feature-specific SQL and business logic
in the corresponding feature package (e.g. `content/`).
"""
