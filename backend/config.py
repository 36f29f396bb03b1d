import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables in priority order:
# 1. backend/.env (lowest priority)
# 2. repo_root/.env (overrides backend)
# 3. repo_root/.env.local (highest priority - overrides everything)
repo_root = Path(__file__).parent.parent
env_local = repo_root / ".env.local"
env_file = repo_root / ".env"
backend_env = Path(__file__).parent / ".env"

if backend_env.exists():
    load_dotenv(dotenv_path=backend_env, override=False)
if env_file.exists():
    load_dotenv(dotenv_path=env_file, override=True)
if env_local.exists():
    load_dotenv(dotenv_path=env_local, override=True)

# Neo4j configuration - read from environment variables
NEO4J_URI = os.getenv("NEO4J_URI", "bolt://localhost:7687")
NEO4J_USER = os.getenv("NEO4J_USER") or os.getenv("NEO4J_USERNAME", "neo4j")
NEO4J_PASSWORD = os.getenv("NEO4J_PASSWORD")  # Required - no default for security
NEO4J_DATABASE = os.getenv("NEO4J_DATABASE") or None

# HTTP server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "3000")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# -----------------------------------------------------------------------------
# Hierarchy fetch / build
# -----------------------------------------------------------------------------
DEFAULT_HIERARCHY_QUERY = (
    "MATCH (n) RETURN n.name AS name, n.description AS description, n.parent AS parent"
)
HIERARCHY_QUERY = os.getenv("HIERARCHY_QUERY", DEFAULT_HIERARCHY_QUERY)

# What to do with records whose parent names an unknown entity: drop | promote | reject
ORPHAN_POLICY = os.getenv("ORPHAN_POLICY", "drop").strip().lower()
ORPHAN_POLICIES = ("drop", "promote", "reject")

# Numeric settings stay as raw strings here; parse_number validates them on use
FETCH_TIMEOUT_SECONDS = os.getenv("FETCH_TIMEOUT_SECONDS", "30")
FETCH_MAX_RETRIES = os.getenv("FETCH_MAX_RETRIES", "2")
FETCH_RETRY_DELAY_SECONDS = os.getenv("FETCH_RETRY_DELAY_SECONDS", "0.5")


def parse_number(name: str, raw, cast):
    try:
        return cast(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a valid {cast.__name__}; got {raw!r}") from None


@dataclass(frozen=True)
class HierarchySettings:
    query: str
    orphan_policy: str
    fetch_timeout_s: float
    max_retries: int
    retry_delay_s: float


def load_hierarchy_settings() -> HierarchySettings:
    if ORPHAN_POLICY not in ORPHAN_POLICIES:
        raise ValueError(
            f"ORPHAN_POLICY must be one of {', '.join(ORPHAN_POLICIES)}; got {ORPHAN_POLICY!r}"
        )
    return HierarchySettings(
        query=HIERARCHY_QUERY,
        orphan_policy=ORPHAN_POLICY,
        fetch_timeout_s=parse_number("FETCH_TIMEOUT_SECONDS", FETCH_TIMEOUT_SECONDS, float),
        max_retries=max(0, parse_number("FETCH_MAX_RETRIES", FETCH_MAX_RETRIES, int)),
        retry_delay_s=max(0.0, parse_number("FETCH_RETRY_DELAY_SECONDS", FETCH_RETRY_DELAY_SECONDS, float)),
    )
