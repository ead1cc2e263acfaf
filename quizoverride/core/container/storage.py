from __future__ import annotations

import typing as t
from pathlib import Path

import alembic.config
import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm
import sqlalchemy.pool
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Factory, Object, Provider, Resource, Singleton
from sqlalchemy.engine.url import URL as DSN

import quizoverride.lib.json as json

from ..config.secrets import PostgresqlSecrets
from ..config.storage import DatabaseSettings, StorageSettings
from ..di import NotReady
from ..provider import LoggingProvider


def build_dsn(config: DatabaseSettings, secrets: PostgresqlSecrets) -> DSN:
    if config.driver.startswith("sqlite"):
        return DSN.create(config.driver, database=config.database)
    return DSN.create(
        config.driver,
        database=config.database,
        username=secrets.username.get_secret_value() if secrets.username else None,
        password=secrets.password.get_secret_value() if secrets.password else None,
        port=config.port,
        host=str(config.host) if config.host else None,
    )


def provide_alembic_conf(
    migration_path: Path, config: DatabaseSettings, secrets: PostgresqlSecrets, root: Path | NotReady
) -> alembic.config.Config:
    if isinstance(root, NotReady):
        raise RuntimeError("root path is unavailable")

    dsn = build_dsn(config, secrets)
    escaped_str = dsn.render_as_string(hide_password=False).replace("%", "%%")

    ac = alembic.config.Config()
    ac.set_main_option("script_location", str(root / migration_path))
    ac.set_section_option("alembic", "sqlalchemy.url", escaped_str)
    ac.set_section_option("alembic", "file_template", "%%(year)d-%%(month).2d-%%(day).2d-%%(slug)s-%%(rev)s")
    return ac


def provide_engine(
    config: DatabaseSettings, secrets: PostgresqlSecrets, debug: bool, logging: LoggingProvider
) -> sqlalchemy.Engine:
    logger = logging.get_logger()
    dsn = build_dsn(config, secrets)

    kwargs: dict[str, t.Any] = {}
    if config.driver.startswith("sqlite") and config.database == ":memory:":
        # one connection shared by every session, or each would see an empty database
        kwargs.update(poolclass=sqlalchemy.pool.StaticPool, connect_args={"check_same_thread": False})

    engine = sqlalchemy.create_engine(
        dsn, echo=config.echo or debug, json_serializer=json.dumps, json_deserializer=json.loads, **kwargs
    )
    if config.driver.startswith("sqlite"):
        sqlalchemy.event.listen(engine, "connect", configure_sqlite)
        sqlalchemy.event.listen(engine, "begin", begin_sqlite)
    else:
        sqlalchemy.event.listen(engine, "connect", register_timezone)

    logger.info(
        "initialized SQLAlchemy engine",
        extra={
            "driver": config.driver,
            "database": config.database,
            "host": config.host,
            "port": config.port,
        },
    )
    return engine


def provide_session(engine: sqlalchemy.Engine) -> sqlalchemy.orm.Session:
    """Create a new session. Callers close it when done."""
    maker = sqlalchemy.orm.sessionmaker(engine, expire_on_commit=False, autoflush=False)
    return maker(autobegin=False)


class PersistentContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()
    debug: Provider[bool] = Object()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    alembic_config: Provider[alembic.config.Config] = Singleton(
        provide_alembic_conf,
        migration_path=Path("migrations/"),
        config=config.database.as_(DatabaseSettings),
        secrets=secrets.postgresql.as_(PostgresqlSecrets),
        root=root,
    )
    engine: Provider[sqlalchemy.Engine] = Singleton(
        provide_engine,
        config=config.database.as_(DatabaseSettings),
        secrets=secrets.postgresql.as_(PostgresqlSecrets),
        debug=debug,
        logging=logging,
    )
    session: Provider[sqlalchemy.orm.Session] = Factory(provide_session, engine=engine)


class StorageContainer(DeclarativeContainer):
    config: Provider[StorageSettings] = Configuration(strict=True)
    secrets: Provider[PostgresqlSecrets] = Configuration(strict=True)
    debug: Provider[bool] = Object()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    persistent: Provider[PersistentContainer] = Container(
        PersistentContainer, config=config.persistent, secrets=secrets, debug=debug, logging=logging, root=root
    )


def configure_sqlite(dbapi_conn: t.Any, _: t.Any) -> None:
    """Take transaction control away from pysqlite so SAVEPOINT works.

    See the "Serializable isolation / Savepoints / Transactional DDL" section of
    the SQLAlchemy SQLite dialect documentation.
    """
    dbapi_conn.isolation_level = None
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def begin_sqlite(conn: sqlalchemy.Connection) -> None:
    conn.exec_driver_sql("BEGIN")


def register_timezone(dbapi_conn: t.Any, _: t.Any) -> None:
    """Set connection timezone to UTC so timestamps read back consistently."""
    cursor = dbapi_conn.cursor()
    cursor.execute("SET TIMEZONE TO 'UTC'")
    cursor.close()
