"""
cambright.api

API package for the Cambright service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring, exception handlers and response shaping.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers stay thin: request validation + auth + delegation to services.
