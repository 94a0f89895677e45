"""
Shared utilities for the FluxFlix services.

This package aggregates common building blocks consumed by every service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application scaffold

Do not import from service_* packages into shared/.
"""
