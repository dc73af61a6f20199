import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# "file" keeps the registry in TEAMS_FILE, "redis" keeps it in a Redis hash
TEAMS_STORE = os.getenv("TEAMS_STORE", "file")
TEAMS_FILE = os.getenv("TEAMS_FILE", os.path.join(os.getcwd(), "teams.json"))

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)

TEAM_CODE_LENGTH = 6
TEAM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"  # no 0/O/1/I
MAX_NAME_LENGTH = 50
