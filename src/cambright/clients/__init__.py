"""
cambright.clients

Outbound HTTP clients for third-party services.
"""
