from .app import create_app, status_for_error
from .config import ServerConfig

__all__ = ['create_app', 'status_for_error', 'ServerConfig']
