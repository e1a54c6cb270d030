"""
Resource types - schema declarations of managed resources.
"""

from .rabbitmq_user import RABBITMQ_USER, AdminFlag, build_rabbitmq_user_schema

# Types an engine syncs when constructed without explicit schemas
BUILTIN_TYPES = (RABBITMQ_USER,)

__all__ = ["BUILTIN_TYPES", "RABBITMQ_USER", "AdminFlag", "build_rabbitmq_user_schema"]
