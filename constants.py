import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# Comma separated, "*" allows every origin
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

# Deployments without public rooms only run random matchmaking
ENABLE_ROOMS = os.getenv("ENABLE_ROOMS", "true").lower() in ("1", "true", "yes", "on")

ROOM_DEFAULT_SIZE = int(os.getenv("ROOM_DEFAULT_SIZE", 10))
ROOM_MIN_SIZE = int(os.getenv("ROOM_MIN_SIZE", 2))
ROOM_MAX_SIZE = int(os.getenv("ROOM_MAX_SIZE", 20))
ROOM_NAME_MAX_LENGTH = int(os.getenv("ROOM_NAME_MAX_LENGTH", 15))

NICKNAME_MAX_LENGTH = int(os.getenv("NICKNAME_MAX_LENGTH", 24))
MESSAGE_MAX_LENGTH = int(os.getenv("MESSAGE_MAX_LENGTH", 2000))

# Pending outbound frames per socket before new ones are dropped
OUTBOX_MAX_SIZE = int(os.getenv("OUTBOX_MAX_SIZE", 256))
