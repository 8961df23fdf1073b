"""
cambright.services

Service layer: business rules per feature area, built on top of repositories.
Services own `commit()`; repositories only `flush()`.
"""
