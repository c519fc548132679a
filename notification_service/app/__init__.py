"""FastAPI hosting for the notification engine."""

from notification_service.app.main import Collaborators, create_app

__all__ = ["Collaborators", "create_app"]
