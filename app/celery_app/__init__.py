"""
Celery application package — exports the main Celery app instance.
"""
from app.celery_app.celery_config import celery_app

__all__ = ["celery_app"]
