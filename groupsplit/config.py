import os
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv


_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent

# Root .env is canonical; groupsplit/.env remains a fallback for local overrides.
load_dotenv(_PROJECT_ROOT / ".env")
load_dotenv(_PACKAGE_DIR / ".env")


def _first_non_empty_env(*names: str, default: str) -> str:
    """Returns the first non-empty env var value from `names`, else `default`."""
    for name in names:
        value = os.getenv(name)
        if value is not None and value != "":
            return value
    return default


def _parse_decimal_env(*names: str, default: str) -> Decimal:
    """Parses the first non-empty env var in `names` as Decimal, else returns `default`."""
    raw = _first_non_empty_env(*names, default=default)
    try:
        return Decimal(raw)
    except (InvalidOperation, TypeError, ValueError):
        return Decimal(default)


def _default_database_url() -> str:
    """
    Resolves the local store location.

    Preferred var:
      DATABASE_URL (any SQLAlchemy URL)

    Fallback:
      GROUPSPLIT_DATA_DIR/groupsplit.db, or <project root>/groupsplit.db
    """
    if os.getenv("DATABASE_URL"):
        return os.environ["DATABASE_URL"]

    data_dir = Path(_first_non_empty_env("GROUPSPLIT_DATA_DIR", default=str(_PROJECT_ROOT)))
    return f"sqlite:///{data_dir / 'groupsplit.db'}"


class BaseConfig:

    SECRET_KEY: str = _first_non_empty_env(
        "SECRET_KEY",
        default="change-me-in-production",
    )

    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    JSON_SORT_KEYS: bool = False

    # Key of the single group snapshot row in the local store.
    SNAPSHOT_KEY: str = _first_non_empty_env(
        "GROUPSPLIT_SNAPSHOT_KEY",
        default="split-app-data",
    )

    # Absolute threshold below which a pairwise net balance counts as settled.
    SETTLEMENT_EPSILON: Decimal = _parse_decimal_env(
        "GROUPSPLIT_SETTLEMENT_EPSILON",
        default="0.01",
    )

    LOG_LEVEL: str = _first_non_empty_env("LOG_LEVEL", default="INFO")


class DevelopmentConfig(BaseConfig):
    DEBUG:   bool = True
    TESTING: bool = False

    SQLALCHEMY_DATABASE_URI: str = _default_database_url()
    SQLALCHEMY_ECHO: bool = False
    LOG_LEVEL: str = _first_non_empty_env("LOG_LEVEL", default="DEBUG")


class TestingConfig(BaseConfig):

    DEBUG:   bool = True
    TESTING: bool = True

    # In-memory SQLite; Flask-SQLAlchemy pins it to one connection.
    SQLALCHEMY_DATABASE_URI: str = os.getenv("TEST_DATABASE_URL", "sqlite://")
    SQLALCHEMY_ECHO: bool = False

    SNAPSHOT_KEY: str = "split-app-data-test"
    SETTLEMENT_EPSILON: Decimal = Decimal("0.01")


class ProductionConfig(BaseConfig):

    DEBUG:   bool = False
    TESTING: bool = False
    SQLALCHEMY_ECHO: bool = False

    # Same local store as development unless DATABASE_URL says otherwise.
    # SQLAlchemy only accepts the postgresql:// spelling.
    _raw_db_url: str = _default_database_url()
    SQLALCHEMY_DATABASE_URI: str = (
        _raw_db_url.replace("postgres://", "postgresql://", 1)
        if _raw_db_url.startswith("postgres://")
        else _raw_db_url
    )


def validate_production_config(app) -> None:
    """
    Called by create_app("production") right after the config is loaded.
    Raises ValueError for a missing store URL, the placeholder SECRET_KEY, or
    a non-positive settlement epsilon.
    """
    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        raise ValueError(
            "No database URL configured. Set DATABASE_URL or GROUPSPLIT_DATA_DIR."
        )
    if app.config.get("SECRET_KEY") == "change-me-in-production":
        raise ValueError(
            "SECRET_KEY is still the placeholder value; set a random one."
        )
    if app.config.get("SETTLEMENT_EPSILON", Decimal("0")) <= Decimal("0"):
        raise ValueError(
            "GROUPSPLIT_SETTLEMENT_EPSILON must be a positive decimal."
        )


# ── Config selector ────────────────────────────────────────────────────────
#
# create_app(config_name) looks the name up here.
# ──────────────────────────────────────────────────────────────────────────

config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing":     TestingConfig,
    "production":  ProductionConfig,
}
