from pydantic import BaseModel

from app.cw.config import config


class AppEnvironConfig(BaseModel):
    DEBUG: bool = config.get_bool("DEBUG")

    # HTTP / Socket.IO bind
    API_HOST: str = config.get_str("API_HOST", "0.0.0.0")
    API_PORT: int = config.get_int("API_PORT", 5000)
    # Shared by the HTTP CORS middleware and the Socket.IO handshake
    API_CORS_ORIGINS: list[str] = config.get_list("API_CORS_ORIGINS", ["*"])

    # Classroom configuration
    CLASSROOM_ADMIN_CODE: str = config.get_str("CLASSROOM_ADMIN_CODE", "teach123")
    CLASSROOM_ROOM: str = config.get_str("CLASSROOM_ROOM", "classroom")
    # Seconds between the `kicked` notice and the forced disconnect
    KICK_GRACE_SECONDS: float = config.get_float("KICK_GRACE_SECONDS", 0.1)


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
