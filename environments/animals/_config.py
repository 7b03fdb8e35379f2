"""Runtime configuration read from the environment."""

import os
from typing import Optional


class AnimalsConfig:
    """Game configuration.

    Attributes:
        store_path: JSON knowledge file; None keeps the tree in memory
        log_level: Standard logging level name
        log_format: "json" or "console"
        max_sessions: Upper bound on concurrently open sessions
        session_ttl: Seconds an untouched session is kept before eviction
        seed_question: Root question used when the store is empty
        seed_yes: Item on the "yes" side of the seed question
        seed_no: Item on the "no" side of the seed question
    """

    def __init__(
        self,
        store_path: Optional[str] = None,
        log_level: str = "INFO",
        log_format: str = "console",
        max_sessions: int = 1000,
        session_ttl: float = 3600.0,
        seed_question: str = "Does it fly?",
        seed_yes: str = "Eagle",
        seed_no: str = "Dog",
    ):
        if max_sessions < 1:
            raise ValueError(f"max_sessions must be positive, got {max_sessions}")
        if session_ttl <= 0:
            raise ValueError(f"session_ttl must be positive, got {session_ttl}")
        if log_format not in ("json", "console"):
            raise ValueError(f"Unknown log format: {log_format}")
        self.store_path = store_path
        self.log_level = log_level
        self.log_format = log_format
        self.max_sessions = max_sessions
        self.session_ttl = session_ttl
        self.seed_question = seed_question
        self.seed_yes = seed_yes
        self.seed_no = seed_no

    @classmethod
    def from_env(cls) -> "AnimalsConfig":
        defaults = cls()
        return cls(
            store_path=os.getenv("ANIMALS_STORE_PATH") or None,
            log_level=os.getenv("ANIMALS_LOG_LEVEL", defaults.log_level),
            log_format=os.getenv("ANIMALS_LOG_FORMAT", defaults.log_format),
            max_sessions=int(os.getenv("ANIMALS_MAX_SESSIONS", defaults.max_sessions)),
            session_ttl=float(os.getenv("ANIMALS_SESSION_TTL", defaults.session_ttl)),
            seed_question=os.getenv("ANIMALS_SEED_QUESTION", defaults.seed_question),
            seed_yes=os.getenv("ANIMALS_SEED_YES", defaults.seed_yes),
            seed_no=os.getenv("ANIMALS_SEED_NO", defaults.seed_no),
        )
