"""
cambright.auth

Authentication/authorization package.

Responsibilities:
- JWT helpers and validation for identity-provider session tokens.
- FastAPI auth dependencies (Principal, organization scope, roles).
"""

# Package marker.
