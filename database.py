import logging

from flask import current_app, g
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cache import MemoryCache
from models import Base
from repository import CommonRepository

logger = logging.getLogger(__name__)


def make_engine(url: str):
    """Create an engine; in-memory SQLite shares a single connection."""
    if url in ('sqlite://', 'sqlite:///:memory:'):
        return create_engine(
            url,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )
    return create_engine(url, pool_pre_ping=True)


def init_app(app):
    """Bind an engine, session factory and the shared lookup cache to the Flask app."""
    engine = make_engine(app.config['DATABASE_URL'])
    app.extensions['db_engine'] = engine
    app.extensions['db_sessionmaker'] = sessionmaker(bind=engine, expire_on_commit=False)
    app.extensions['map_cache'] = MemoryCache(max_entries=app.config.get('CACHE_MAX_ENTRIES'))

    if app.config.get('CREATE_SCHEMA'):
        Base.metadata.create_all(engine)
        logger.info('Database schema created')

    app.teardown_appcontext(close_session)


def get_session() -> Session:
    """Return the session for the current request, opening one if needed."""
    if 'db_session' not in g:
        g.db_session = current_app.extensions['db_sessionmaker']()
    return g.db_session


def close_session(exc=None):
    session = g.pop('db_session', None)
    if session is not None:
        if exc is not None:
            session.rollback()
        session.close()


def get_repository():
    """Repository bound to this request's session and the app-wide cache."""
    if 'repository' not in g:
        g.repository = CommonRepository(get_session(), current_app.extensions['map_cache'])
    return g.repository
