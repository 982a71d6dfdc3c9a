from .settings import get_settings
