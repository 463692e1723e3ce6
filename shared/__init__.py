"""
Shared utilities for the rules engine.

This package aggregates common building blocks consumed by the engine:

- config: Engine configuration via pydantic-settings
- logging: Structured logging with evaluation correlation
- errors: Canonical error types and responses

Do not import from rules_engine into shared/.
"""
