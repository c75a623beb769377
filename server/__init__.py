"""
Server package exposing the FastAPI app factory and the room manager.
"""

from .rooms import RoomManager  # noqa: F401
from .settings import ServerSettings, get_settings  # noqa: F401
