"""
cambright.schemas

Request validation models shared between routers and services.
"""
