import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

RELAY_PATH = os.getenv("RELAY_PATH", "/ws")
HEALTH_MESSAGE = os.getenv("HEALTH_MESSAGE", "Pair Relay Server OK")

# Close code sent to a third peer after the "Room is full" notification
ROOM_FULL_CLOSE_CODE = int(os.getenv("ROOM_FULL_CLOSE_CODE", 4000))
ROOM_FULL_REASON = "Room full"
ROOM_FULL_MESSAGE = "Room is full"
