"""
Shared, cross-cutting code for the API.

`core/` should contain small building blocks that multiple features use
(DB wiring, the entity store, errors, settings, logging). Keep
feature-specific rules in the corresponding feature package
(e.g. `categories/`, `questions/`, `ingestion/`).
"""
