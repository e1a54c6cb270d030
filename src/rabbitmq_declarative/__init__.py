"""
RabbitMQ Declarative - declarative resource types for RabbitMQ broker state.

This package provides a reconciliation core for configuration management:
- Typed resource schemas with validation, munging and defaults
- Pluggable per-property equivalence checks
- Idempotent ensure/create/destroy convergence through a Provider
- Redaction of sensitive values in change reports
"""

__version__ = "0.1.0"
