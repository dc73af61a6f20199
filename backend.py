import json
import os
from typing import Dict

import redis

from constants import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD, TEAMS_FILE, TEAMS_STORE
from redis_keys import REDIS_TEAMS_KEY
from exceptions import PersistenceFailure
from logging_config import get_logger

logger = get_logger(__name__)


class JsonFileTeamStore:
    """Team registry kept as one pretty-printed JSON document on disk."""

    def __init__(self, path: str = TEAMS_FILE):
        self.path = path
        logger.info(f"Initializing JsonFileTeamStore at {self.path}")

    def load(self) -> Dict[str, dict]:
        if not os.path.exists(self.path):
            logger.info(f"Teams file {self.path} not found, creating an empty one")
            self.save({})
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            raw = f.read()
        teams = json.loads(raw) if raw.strip() else {}
        logger.debug(f"Loaded {len(teams)} teams from {self.path}")
        return teams

    def save(self, teams: Dict[str, dict]):
        # Write to a sibling file first so a crash mid-write keeps the old document
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(teams, f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError) as e:
            raise PersistenceFailure(f"Failed to save teams file {self.path}: {e}") from e
        logger.debug(f"Saved {len(teams)} teams to {self.path}")


class RedisTeamStore:
    """Team registry kept as a Redis hash: one field per team code."""

    def __init__(self, redis_client=None, key: str = REDIS_TEAMS_KEY):
        self.key = key
        if redis_client is None:
            logger.info(f"Initializing RedisTeamStore with connection to {REDIS_HOST}:{REDIS_PORT}")
            try:
                redis_client = redis.Redis(host=REDIS_HOST, port=REDIS_PORT, password=REDIS_PASSWORD, decode_responses=True)
                redis_client.ping()
                logger.info(f"Redis client connected successfully to {REDIS_HOST}:{REDIS_PORT}")
            except Exception as e:
                logger.error(f"Failed to connect to Redis at {REDIS_HOST}:{REDIS_PORT}: {e}", exc_info=True)
                raise
        self.redis_client = redis_client

    def load(self) -> Dict[str, dict]:
        raw = self.redis_client.hgetall(self.key)
        teams = {}
        for code, value in raw.items():
            try:
                teams[code] = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                logger.warning(f"Skipping unreadable team entry {code} in {self.key}")
        logger.debug(f"Loaded {len(teams)} teams from Redis key {self.key}")
        return teams

    def save(self, teams: Dict[str, dict]):
        # Full rewrite in one MULTI/EXEC so readers never see a half-written hash
        try:
            pipe = self.redis_client.pipeline(transaction=True)
            pipe.delete(self.key)
            if teams:
                pipe.hset(self.key, mapping={code: json.dumps(team) for code, team in teams.items()})
            pipe.execute()
        except redis.RedisError as e:
            raise PersistenceFailure(f"Failed to save teams to Redis key {self.key}: {e}") from e
        logger.debug(f"Saved {len(teams)} teams to Redis key {self.key}")


def build_team_store(kind: str = TEAMS_STORE):
    if kind == "redis":
        return RedisTeamStore()
    if kind == "file":
        return JsonFileTeamStore()
    raise ValueError(f"Unknown TEAMS_STORE {kind!r}, expected 'file' or 'redis'")
