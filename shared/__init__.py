"""
Shared utilities for the Blog API.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace and request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application scaffolding
- test_helpers: Test data factory and in-memory fakes

Service logic does not belong here. Only test_helpers imports from
service_blog, and only the domain models.
"""
