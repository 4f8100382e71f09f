"""Data access for versions, access rules, short links and ancillary lookups.

Reads go through a shared MemoryCache where the value is safe to share
between users; objects handed out are detached from the session, so every
relationship the callers need is loaded eagerly.
"""
import logging
import secrets
import string
from datetime import timedelta
from typing import Callable, List, Optional
from urllib.parse import urlsplit

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from assembler import assemble_version
from cache import CachePriority, MemoryCache
from exceptions import GeneralVersionNotFoundError
from models import (
    ApplicationUserRole,
    Basemap,
    Bookmark,
    Category,
    CategoryLayer,
    Layer,
    LayerSource,
    ProxyAllowedHost,
    ShortLink,
    URLAuthorizationRule,
    Version,
    VersionBasemap,
    VersionCategory,
    VersionProjection,
    VersionUser,
    WebLayerServiceDefinition,
)
from viewmodels import VersionViewModel

logger = logging.getLogger(__name__)

# ───────── Cache lifetimes ─────────
VERSION_TTL = timedelta(minutes=10)
USER_ROLES_TTL = timedelta(minutes=2)
WEB_LAYER_SERVICES_TTL = timedelta(minutes=10)
PROXY_ALLOWED_HOSTS_TTL = timedelta(hours=12)

GENERAL_SLUG = 'general'
MAX_SHORT_ID_ATTEMPTS = 100
SHORT_ID_LENGTH = 8
SHORT_ID_ALPHABET = string.ascii_letters + string.digits + '-_'


def create_slug(*slug_parts: Optional[str]) -> str:
    """Join the non-empty slug parts, lowercased, with '/'."""
    return '/'.join(part.lower() for part in slug_parts if part)


def random_short_id() -> str:
    return ''.join(secrets.choice(SHORT_ID_ALPHABET) for _ in range(SHORT_ID_LENGTH))


def sanitize_log_value(value) -> str:
    """Strip line breaks from user supplied text before it reaches a log line."""
    return str(value).replace('\r', '').replace('\n', '')


def _layer_source_options():
    return (
        selectinload(LayerSource.attribution),
        selectinload(LayerSource.layer_source_options),
    )


def _full_version_options():
    return (
        selectinload(Version.version_categories)
        .selectinload(VersionCategory.category)
        .selectinload(Category.layers)
        .selectinload(CategoryLayer.layer)
        .selectinload(Layer.layer_source)
        .options(*_layer_source_options()),
        selectinload(Version.version_basemaps)
        .selectinload(VersionBasemap.basemap)
        .selectinload(Basemap.layer_source)
        .options(*_layer_source_options()),
        selectinload(Version.version_projections).selectinload(VersionProjection.projection),
        selectinload(Version.version_layer_customisations),
    )


class CommonRepository:
    def __init__(
        self,
        session: Session,
        cache: MemoryCache,
        short_id_factory: Callable[[], str] = random_short_id,
    ):
        self.session = session
        self.cache = cache
        self.short_id_factory = short_id_factory

    # ───────── Versions ─────────

    def get_version_by_slug(self, slug1: str, slug2: str = None, slug3: str = None) -> Optional[Version]:
        """
        Get the basic, top-level version for a URL slug, or None.

        Related entities are not loaded; use get_version for the full aggregate.
        """
        slug = create_slug(slug1, slug2, slug3)
        cache_key = f'VersionBySlug/{slug}'

        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        version = self.session.scalars(
            select(Version).where(Version.slug == slug)
        ).first()

        if version is not None:
            # Detached so a later full load in this session builds its own instance.
            self.session.expunge(version)
            self.cache.set(cache_key, version, VERSION_TTL)
        return version

    def get_version(self, version_id: int) -> Optional[Version]:
        """
        Get a version with all its categories, layers, basemaps, projections and
        customisations loaded. An empty help URL is inherited from the general version.
        """
        cache_key = f'Version/{version_id}'

        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        version = self.session.scalars(
            select(Version)
            .options(*_full_version_options())
            .where(Version.id == version_id)
            .execution_options(populate_existing=True)
        ).first()
        if version is None:
            return None

        # Untracked from here on: the help URL backfill must never be flushed.
        self.session.expunge(version)
        if not version.help_url:
            general_version = self.get_version_by_slug(GENERAL_SLUG)
            if general_version is None:
                raise GeneralVersionNotFoundError(version_id)
            version.help_url = general_version.help_url

        self.cache.set(cache_key, version, VERSION_TTL)
        return version

    def get_version_view_model(self, version: Version) -> VersionViewModel:
        return assemble_version(version, self.get_url_authorization_rules())

    def get_url_authorization_rules(self) -> List[URLAuthorizationRule]:
        return list(self.session.scalars(
            select(URLAuthorizationRule).order_by(URLAuthorizationRule.priority)
        ))

    def get_versions(self) -> List[Version]:
        return list(self.session.scalars(select(Version).order_by(Version.id)))

    # ───────── Access ─────────

    def can_user_access_version(self, user_id: Optional[str], version_id: int) -> bool:
        version = self.get_version(version_id)
        if version is not None and not version.require_login:
            return True
        if user_id is None:
            return False

        granted = self.session.scalars(
            select(VersionUser.user_id)
            .where(VersionUser.user_id == user_id, VersionUser.version_id == version_id)
        ).first()
        return granted is not None

    def get_versions_list_for_user(self, user_id: Optional[str]) -> List[Version]:
        users_versions = self.session.scalars(
            select(Version)
            .join(VersionUser, VersionUser.version_id == Version.id)
            .where(
                VersionUser.user_id == user_id,
                Version.enabled.is_(True),
                Version.hidden.is_(False),
                Version.require_login.is_(True),
            )
            .order_by(Version.id)
        ).all()

        public_versions = self.session.scalars(
            select(Version)
            .where(
                Version.enabled.is_(True),
                Version.require_login.is_(False),
                Version.hidden.is_(False),
            )
            .order_by(Version.id)
        ).all()

        return [*users_versions, *public_versions]

    # ───────── Ancillary caches ─────────

    def get_user_roles(self, user_id: str) -> List[ApplicationUserRole]:
        cache_key = f'UserRole/{user_id}'
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        roles = list(self.session.scalars(
            select(ApplicationUserRole)
            .options(selectinload(ApplicationUserRole.role))
            .where(ApplicationUserRole.user_id == user_id)
        ))
        return self.cache.set(cache_key, roles, USER_ROLES_TTL, CachePriority.LOW)

    def get_web_layer_service_definitions(self, include_admin_definitions: bool) -> List[WebLayerServiceDefinition]:
        cache_key = f'WebLayerServiceDefinitions/{bool(include_admin_definitions)}'
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        services = list(self.session.scalars(
            select(WebLayerServiceDefinition).order_by(
                WebLayerServiceDefinition.sort_order, WebLayerServiceDefinition.id
            )
        ))
        if not include_admin_definitions:
            services = [s for s in services if not s.admin_only]

        return self.cache.set(cache_key, services, WEB_LAYER_SERVICES_TTL, CachePriority.LOW)

    def get_proxy_allowed_hosts(self) -> List[ProxyAllowedHost]:
        cache_key = 'ProxyAllowedHosts'
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        allowed_hosts = list(self.session.scalars(select(ProxyAllowedHost)))
        return self.cache.set(cache_key, allowed_hosts, PROXY_ALLOWED_HOSTS_TTL, CachePriority.LOW)

    def is_proxy_host_allowed(self, url: str) -> bool:
        host = urlsplit(url).hostname
        if not host:
            return False
        return any(h.host.lower() == host.lower() for h in self.get_proxy_allowed_hosts())

    def get_bookmarks_for_user(self, user_id: str) -> List[Bookmark]:
        return list(self.session.scalars(
            select(Bookmark).where(Bookmark.user_id == user_id).order_by(Bookmark.name)
        ))

    # ───────── Short links ─────────

    def _short_id_exists(self, short_id: str) -> bool:
        return self.session.get(ShortLink, short_id) is not None

    def generate_short_id(self, url: str) -> str:
        """
        Return a short id not yet used by any ShortLink.

        Gives up after MAX_SHORT_ID_ATTEMPTS candidates and returns an empty string.
        """
        for _ in range(MAX_SHORT_ID_ATTEMPTS):
            short_id = self.short_id_factory()
            if not self._short_id_exists(short_id):
                return short_id

        logger.error(
            'Could not generate a unique short id for url %s after %s tries',
            sanitize_log_value(url), MAX_SHORT_ID_ATTEMPTS,
        )
        return ''

    def create_short_link(self, url: str) -> Optional[ShortLink]:
        short_id = self.generate_short_id(url)
        if not short_id:
            return None
        short_link = ShortLink(short_id=short_id, full_url=url)
        self.session.add(short_link)
        self.session.commit()
        return short_link

    def get_full_url_from_short_id(self, short_id: str) -> str:
        short_link = self.session.get(ShortLink, short_id)
        if short_link is None or not short_link.full_url:
            return ''
        return short_link.full_url


def is_url_current_application(url: str, host: str, port: Optional[int], scheme: str) -> bool:
    """True when ``url`` points at this application; the port is ignored when the request has none."""
    try:
        parts = urlsplit(url)
        url_port = parts.port
    except ValueError:
        return False
    if url_port is None:
        url_port = {'http': 80, 'https': 443}.get(parts.scheme)
    return (
        parts.hostname == host
        and (port is None or url_port == port)
        and parts.scheme == scheme
    )
