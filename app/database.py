"""Database configuration and lifecycle."""
from contextlib import contextmanager
from typing import Iterator, Optional

from flask import current_app
from sqlalchemy import BigInteger, Integer, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

# Create SQLAlchemy base
Base = declarative_base()

# BIGSERIAL on PostgreSQL, INTEGER PRIMARY KEY (rowid alias) on SQLite
BigIntId = BigInteger().with_variant(Integer(), 'sqlite')


class Database:
    """
    Owns the engine and session factory for one application.

    Opened by ``init_db`` when the app is created and disposed at shutdown.
    Services receive sessions from it explicitly instead of importing a
    process-wide global.
    """

    def __init__(self, database_uri: str, echo: bool = False,
                 pool_size: int = 10, max_overflow: int = 20):
        engine_kwargs = {'echo': echo, 'pool_pre_ping': True}
        if database_uri.startswith('sqlite'):
            engine_kwargs['connect_args'] = {'check_same_thread': False}
        else:
            engine_kwargs['pool_size'] = pool_size
            engine_kwargs['max_overflow'] = max_overflow

        self.engine: Engine = create_engine(database_uri, **engine_kwargs)
        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    def create_all(self) -> None:
        """Create every table known to the models package."""
        import app.models  # noqa: F401  (registers mappers)
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(self.engine)

    def new_session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on any error."""
        session = self.new_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


def init_db(app) -> Database:
    """Initialize database connection for the app."""
    database = Database(
        app.config['SQLALCHEMY_DATABASE_URI'],
        echo=app.config.get('SQLALCHEMY_ECHO', False),
        pool_size=app.config.get('SQLALCHEMY_POOL_SIZE', 10),
        max_overflow=app.config.get('SQLALCHEMY_MAX_OVERFLOW', 20),
    )
    app.extensions['database'] = database

    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close the request session and rollback on error."""
        from flask import g
        session: Optional[Session] = g.pop('db_session', None)
        if session is not None:
            if exception:
                session.rollback()
            session.close()

    return database


def get_database() -> Database:
    """Database bound to the current app."""
    return current_app.extensions['database']


def get_session() -> Session:
    """Get the request-scoped database session."""
    from flask import g
    if 'db_session' not in g:
        g.db_session = get_database().new_session()
    return g.db_session
