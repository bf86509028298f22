"""Route blueprints for the web application."""

from .languages import languages_bp
from .projects import projects_bp
from .translation import translation_bp
from .transfer import transfer_bp
from .settings import settings_bp

__all__ = [
    "languages_bp",
    "projects_bp",
    "translation_bp",
    "transfer_bp",
    "settings_bp",
]
