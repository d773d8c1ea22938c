# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URLs, the WSGI application and the Celery app.
#
# Import Celery app to ensure it's loaded when Django starts, so the
# expiry sweep task is registered for the beat scheduler.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
