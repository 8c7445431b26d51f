# minichess/config.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import os
import tomllib  # python >=3.11

logger = logging.getLogger(__name__)

# Base material (pawn units)
PIECE_VALUES = {
    "PAWN": 1.0,
    "KNIGHT": 3.0,
    "BISHOP": 3.3,
    "ROOK": 5.0,
    "QUEEN": 9.0,
    "KING": 0.0,
}

# 6x5 bonus tables, row 0 is black's back rank.
POSITION_TABLES = {
    "PAWN": [
        [0, 0, 0, 0, 0],
        [0.5, 0.5, 0.5, 0.5, 0.5],
        [0.2, 0.2, 0.3, 0.2, 0.2],
        [0.1, 0.1, 0.2, 0.1, 0.1],
        [0, 0, 0, 0, 0],
        [0, 0, 0, 0, 0],
    ],
    "KNIGHT": [
        [0, 0.1, 0.2, 0.1, 0],
        [0.1, 0.2, 0.4, 0.2, 0.1],
        [0.2, 0.3, 0.5, 0.3, 0.2],
        [0.2, 0.3, 0.5, 0.3, 0.2],
        [0.1, 0.2, 0.4, 0.2, 0.1],
        [0, 0.1, 0.2, 0.1, 0],
    ],
    "BISHOP": [
        [0, 0.1, 0.2, 0.1, 0],
        [0.1, 0.2, 0.3, 0.2, 0.1],
        [0.1, 0.3, 0.4, 0.3, 0.1],
        [0.1, 0.3, 0.4, 0.3, 0.1],
        [0.1, 0.2, 0.3, 0.2, 0.1],
        [0, 0.1, 0.2, 0.1, 0],
    ],
    "ROOK": [
        [0.2, 0.3, 0.3, 0.3, 0.2],
        [0.3, 0.4, 0.4, 0.4, 0.3],
        [0.1, 0.2, 0.2, 0.2, 0.1],
        [0.1, 0.2, 0.2, 0.2, 0.1],
        [0.1, 0.2, 0.2, 0.2, 0.1],
        [0, 0, 0, 0, 0],
    ],
    "QUEEN": [
        [0.2, 0.3, 0.3, 0.3, 0.2],
        [0.3, 0.4, 0.4, 0.4, 0.3],
        [0.2, 0.3, 0.3, 0.3, 0.2],
        [0.2, 0.3, 0.3, 0.3, 0.2],
        [0.1, 0.2, 0.2, 0.2, 0.1],
        [0, 0.1, 0.2, 0.1, 0],
    ],
    "KING": [
        [-0.3, -0.4, -0.4, -0.4, -0.3],
        [-0.4, -0.5, -0.5, -0.5, -0.4],
        [-0.4, -0.5, -0.5, -0.5, -0.4],
        [-0.4, -0.5, -0.5, -0.5, -0.4],
        [-0.3, -0.4, -0.4, -0.4, -0.3],
        [0, 0, 0, 0, 0],
    ],
}

GAME_MODES = ("human", "ai", "ai-vs-ai")


@dataclass
class SearchConfig:
    depth: int = 4  # human-facing play
    exhibition_depth: int = 6  # engine vs engine
    max_depth_limit: int = 12
    time_limit_ms: int = 3000
    exhibition_time_limit_ms: int = 2000
    use_quiescence: bool = True
    q_max_depth: int = 4
    tt_capacity: int = 500_000
    # anti-repetition, in evaluation units
    repetition_penalty: float = 1.0
    same_piece_penalty: float = 0.5
    recent_window: int = 6
    candidate_window: float = 2.0
    seed: Optional[int] = None  # None means non-deterministic root selection

    def depth_for(self, mode: str) -> int:
        depth = self.exhibition_depth if mode == "ai-vs-ai" else self.depth
        return max(1, min(depth, self.max_depth_limit))

    def time_limit_for(self, mode: str) -> int:
        return self.exhibition_time_limit_ms if mode == "ai-vs-ai" else self.time_limit_ms


@dataclass
class EvalConfig:
    piece_values: Dict[str, float] = field(default_factory=lambda: PIECE_VALUES.copy())
    position_tables: Dict[str, List[List[float]]] = field(
        default_factory=lambda: {k: [row[:] for row in v] for k, v in POSITION_TABLES.items()}
    )
    use_positional: bool = True
    # tables are read at the raw square for both colours unless this is set
    mirror_black: bool = False
    king_exposed_penalty: float = 2.0
    pawn_structure_weights: Dict[str, float] = field(default_factory=lambda: {
        "isolated_penalty": 0.3, "doubled_penalty": 0.5
    })
    mobility_weight: float = 0.1
    mate_score: float = 20000.0


@dataclass
class RulesConfig:
    move_limit: int = 100  # plies, the 50-move analog
    promotion_choices: List[str] = field(default_factory=lambda: ["q", "r", "b", "n"])


@dataclass
class UIConfig:
    engine_name: str = "MiniChess"
    default_mode: str = "human"


@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log_level: str = "INFO"

    @staticmethod
    def load_from_toml(path: str = "config.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        for section in ("search", "eval", "rules", "ui"):
            target = getattr(cfg, section)
            for k, v in raw.get(section, {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)
                else:
                    logger.warning("Unknown config key [%s] %s ignored", section, k)
        if "log_level" in raw:
            cfg.log_level = raw["log_level"]
        return cfg


# single globally importable config instance
CONFIG = Config.load_from_toml(os.environ.get("MINICHESS_CONFIG_TOML", "config.toml"))
# allow env override of depth for quick debugging
override_depth = os.environ.get("MINICHESS_SEARCH_DEPTH")
if override_depth:
    try:
        CONFIG.search.depth = int(override_depth)
    except ValueError:
        logger.warning("Ignoring non-integer MINICHESS_SEARCH_DEPTH=%r", override_depth)
