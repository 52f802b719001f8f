import os
from urllib.parse import quote_plus

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()
engine = None
SessionLocal = None

# SQL Server schemas used by the models; flattened away on SQLite.
MANAGED_SCHEMAS = ("auth", "notes", "notifications")


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


def _build_connection_url(login_env: str, password_env: str, database_override: str | None = None) -> str:
    driver = os.getenv("SQLSERVER_DRIVER", "")
    host = os.getenv("SQLSERVER_HOST", "")
    port = os.getenv("SQLSERVER_PORT", "")
    database = database_override or os.getenv("SQLSERVER_DB", "")
    user = os.getenv(login_env, "")
    password = os.getenv(password_env, "")

    missing = [key for key, value in {
        "SQLSERVER_HOST": host,
        "SQLSERVER_PORT": port,
        "SQLSERVER_DB": database,
        "SQLSERVER_DRIVER": driver,
        login_env: user,
        password_env: password,
    }.items() if not value]
    if missing:
        raise RuntimeError(f"Missing database configuration: {', '.join(missing)}")

    driver_encoded = quote_plus(driver)
    password_encoded = quote_plus(password)
    return (
        f"mssql+pyodbc://{user}:{password_encoded}@{host}:{port}/{database}"
        f"?driver={driver_encoded}&Encrypt=yes&TrustServerCertificate=yes"
    )


def BuildUserConnectionUrl() -> str:
    override = os.getenv("DATABASE_URL", "").strip()
    if override:
        return override
    return _build_connection_url("SQLSERVER_USER_LOGIN", "SQLSERVER_USER_PASSWORD")


def BuildAdminConnectionUrl() -> str:
    override = os.getenv("DATABASE_URL", "").strip()
    if override:
        return override
    return _build_connection_url("SQLSERVER_ADMIN_LOGIN", "SQLSERVER_ADMIN_PASSWORD")


def IsSqliteUrl(url: str) -> bool:
    return url.startswith("sqlite")


def SchemaTranslateMap(url: str) -> dict[str, None] | None:
    if not IsSqliteUrl(url):
        return None
    return {schema: None for schema in MANAGED_SCHEMAS}


def CreateEngineForUrl(url: str):
    if IsSqliteUrl(url):
        options = {"connect_args": {"check_same_thread": False}}
        if url in {"sqlite://", "sqlite:///:memory:"}:
            options["poolclass"] = StaticPool
        created = create_engine(url, **options)
    else:
        created = create_engine(
            url,
            pool_pre_ping=True,
            pool_size=_read_int_env("SQLALCHEMY_POOL_SIZE", 10),
            max_overflow=_read_int_env("SQLALCHEMY_MAX_OVERFLOW", 20),
            pool_timeout=_read_int_env("SQLALCHEMY_POOL_TIMEOUT", 60),
        )
    translate_map = SchemaTranslateMap(url)
    if translate_map:
        created = created.execution_options(schema_translate_map=translate_map)
    return created


def _ensure_engine():
    global engine, SessionLocal
    if engine is None:
        engine = CreateEngineForUrl(BuildUserConnectionUrl())
        SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def GetEngine():
    _ensure_engine()
    return engine


def OpenSession():
    _ensure_engine()
    return SessionLocal()


def GetDb():
    db = OpenSession()
    try:
        yield db
    finally:
        db.close()
