"""
Tests package - test suite for the declarative resource core.

Contains:
- unit/: Unit tests for schemas, the rabbitmq_user type, providers,
  the reconciliation engine and observability helpers
"""
