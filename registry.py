"""
Team registry: the durable mapping from team code to team metadata.

The whole document is loaded into memory at startup and rewritten in full
through the store on every creation. Writes are synchronous, so a team is
on disk (or in Redis) before create() returns. A failed write is logged and
the in-memory entry is kept, which leaves a loss window until the next
successful write.
"""
import random
from datetime import datetime, timezone
from typing import Dict, Optional

from constants import TEAM_CODE_ALPHABET, TEAM_CODE_LENGTH
from exceptions import CodeConflict, PersistenceFailure, UnknownTeam
from logging_config import get_logger
from schemas.teams import Team

logger = get_logger(__name__)


def normalize_code(code) -> str:
    return str(code).strip().upper()


def generate_team_code(length: int = TEAM_CODE_LENGTH, rng: random.Random = None) -> str:
    """
    Random code drawn from the ambiguity-reduced alphabet.

    Uniqueness is not checked here; TeamRegistry.create retries on collision.
    """
    rng = rng or random
    return ''.join(rng.choices(TEAM_CODE_ALPHABET, k=length))


class TeamRegistry:
    def __init__(self, store, rng: random.Random = None):
        self.store = store
        self.rng = rng or random.Random()
        self._teams: Dict[str, Team] = {}

    def load(self):
        """Replace the in-memory registry with the store's document."""
        try:
            raw = self.store.load()
        except Exception as e:
            logger.error(f"Failed to read teams from store, starting empty: {e}", exc_info=True)
            raw = {}
        teams = {}
        for code, data in raw.items():
            try:
                teams[code] = Team.model_validate(data)
            except Exception as e:
                logger.warning(f"Ignoring malformed team {code}: {e}")
        self._teams = teams
        logger.info(f"Team registry loaded with {len(self._teams)} teams")

    def create(self, custom_code: Optional[str] = None) -> str:
        code = normalize_code(custom_code) if custom_code is not None else ""
        if code:
            if code in self._teams:
                logger.info(f"Team creation rejected: code {code} already exists")
                raise CodeConflict(code)
        else:
            code = generate_team_code(rng=self.rng)
            while code in self._teams:
                logger.warning(f"Team code collision detected, regenerating: {code}")
                code = generate_team_code(rng=self.rng)

        self._teams[code] = Team(createdAt=datetime.now(timezone.utc).isoformat())
        logger.info(f"Created team {code}")
        self._persist()
        return code

    def lookup(self, code) -> Team:
        team = self._teams.get(normalize_code(code))
        if team is None:
            raise UnknownTeam(code)
        return team

    def exists(self, code) -> bool:
        return normalize_code(code) in self._teams

    def list_all(self) -> Dict[str, Team]:
        return dict(self._teams)

    def _persist(self):
        try:
            self.store.save({code: team.model_dump() for code, team in self._teams.items()})
        except PersistenceFailure as e:
            # The entry stays in memory even though the write failed
            logger.error(f"{e.message}; {len(self._teams)} teams held in memory only", exc_info=True)
