"""
Shared fixtures: an in-memory database seeded with a small map catalog,
a repository with a fresh cache, and a Flask test client.

Seeded catalog
    Versions    1 general            public, help URL set, categories 1+2
                2 planning/highways  login required, no help URL, no default projection
                3 archive            disabled
                4 moved              redirects to another site
                5 secret             hidden
                6 empty              no projections
                7 bad-redirect       malformed redirection URL
    Categories  1 (layers 1, 2) and 2 (layers 2, 3): layer 2 is duplicated
    Users       alice may view version 2; admin-user holds the admin role
"""
import os
import sys

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app import create_app  # noqa: E402
from cache import MemoryCache  # noqa: E402
from config import TestConfig  # noqa: E402
from models import (  # noqa: E402
    ApplicationUserRole,
    Attribution,
    Basemap,
    Bookmark,
    Category,
    CategoryLayer,
    Layer,
    LayerSource,
    LayerSourceOption,
    Projection,
    ProxyAllowedHost,
    Role,
    ShortLink,
    URLAuthorizationRule,
    Version,
    VersionBasemap,
    VersionCategory,
    VersionLayerCustomisation,
    VersionProjection,
    VersionUser,
    WebLayerServiceDefinition,
)
from repository import CommonRepository  # noqa: E402

GENERAL_HELP_URL = 'https://help.example.com/maps'


def seed_catalog(session):
    attribution = Attribution(id=1, name='OSM', attribution_html='&copy; OpenStreetMap')
    source = LayerSource(id=1, name='OSM tiles', layer_source_type='XYZ', attribution=attribution)
    source.layer_source_options = [
        LayerSourceOption(id=1, name='url', value='https://tile.openstreetmap.org/{z}/{x}/{y}.png'),
    ]
    session.add(source)

    session.add_all([
        Layer(id=1, name='Parishes', default_opacity=80, default_saturation=90,
              min_zoom=5, max_zoom=18, layer_source_id=1),
        Layer(id=2, name='Roads', default_opacity=100, layer_source_id=1),
        Layer(id=3, name='Rivers', default_opacity=60, layer_source_id=1),
        Category(id=1, name='Boundaries', order=1),
        Category(id=2, name='Transport', order=2),
    ])
    session.flush()
    session.add_all([
        CategoryLayer(category_id=1, layer_id=1, sort_order=1),
        CategoryLayer(category_id=1, layer_id=2, sort_order=2),
        CategoryLayer(category_id=2, layer_id=2, sort_order=1),
        CategoryLayer(category_id=2, layer_id=3, sort_order=2),
        Basemap(id=1, name='Street map', layer_source_id=1),
        Projection(epsg_code=27700, name='British National Grid'),
        Projection(epsg_code=3857, name='Web Mercator'),
    ])

    session.add_all([
        Version(id=1, name='General', slug='general', help_url=GENERAL_HELP_URL),
        Version(id=2, name='Highways', slug='planning/highways', require_login=True),
        Version(id=3, name='Archive', slug='archive', enabled=False),
        Version(id=4, name='Moved', slug='moved', redirection_url='https://elsewhere.example.com/map'),
        Version(id=5, name='Secret', slug='secret', hidden=True),
        Version(id=6, name='Empty', slug='empty'),
        Version(id=7, name='Bad redirect', slug='bad-redirect', redirection_url='not a url'),
    ])
    session.flush()

    for version_id in (1, 2, 3, 4, 5, 6, 7):
        session.add(VersionCategory(version_id=version_id, category_id=1))
    session.add(VersionCategory(version_id=1, category_id=2))
    session.add(VersionBasemap(version_id=1, basemap_id=1, is_default=True))

    for version_id in (1, 3, 4, 5, 7):
        session.add_all([
            VersionProjection(version_id=version_id, projection_id=27700,
                              is_default_map_projection=True, sort_order=0),
            VersionProjection(version_id=version_id, projection_id=3857, sort_order=1),
        ])
    session.add_all([
        VersionProjection(version_id=2, projection_id=27700, sort_order=0),
        VersionProjection(version_id=2, projection_id=3857, sort_order=1),
    ])

    session.add(VersionLayerCustomisation(
        id=1, version_id=2, category_id=1, layer_id=1, is_default=True, sort_order=42,
    ))

    session.add_all([
        URLAuthorizationRule(id=1, url='https://secure.example.com/', priority=1),
        VersionUser(version_id=2, user_id='alice'),
        Role(id=1, role_name=TestConfig.ADMIN_ROLE),
        ApplicationUserRole(user_id='admin-user', role_id=1),
        WebLayerServiceDefinition(id=1, name='Public WMS', url='https://wms.example.com/', sort_order=1),
        WebLayerServiceDefinition(id=2, name='Internal WMS', url='https://internal.example.com/',
                                  sort_order=2, admin_only=True),
        ProxyAllowedHost(id=1, host='tiles.example.com'),
        ShortLink(short_id='abc123', full_url='https://maps.example.com/general'),
        ShortLink(short_id='broken', full_url='not a url'),
        Bookmark(id=1, user_id='alice', name='Town centre', x=292000.0, y=92000.0, zoom=12),
        Bookmark(id=2, user_id='alice', name='Harbour', x=291000.0, y=90500.0, zoom=14),
        Bookmark(id=3, user_id='bob', name='Moor', x=260000.0, y=80000.0, zoom=9),
    ])
    session.commit()


@pytest.fixture
def app_factory():
    """Factory fixture: a seeded app built from TestConfig plus ``overrides``."""
    def _make(overrides=None):
        app = create_app(TestConfig, overrides)
        session = app.extensions['db_sessionmaker']()
        try:
            seed_catalog(session)
        finally:
            session.close()
        return app
    return _make


@pytest.fixture
def app(app_factory):
    return app_factory()


@pytest.fixture
def session_factory(app):
    return app.extensions['db_sessionmaker']


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def repository(session, cache):
    return CommonRepository(session, cache)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Factory fixture: sign the test client in as ``user_id``."""
    def _login(user_id, id_token=None):
        with client.session_transaction() as flask_session:
            flask_session['user_id'] = user_id
            if id_token is not None:
                flask_session['id_token'] = id_token
    return _login
