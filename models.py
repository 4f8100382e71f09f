"""ORM models mirroring the map configuration schema.

The schema is owned by the data store; these classes only map it. Link
tables (version ↔ category, category ↔ layer, ...) are mapped as their own
classes because they carry per-link attributes such as sort order and
default flags.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


# ───────── Versions ─────────

class Version(Base):
    __tablename__ = 'versions'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    hidden: Mapped[bool] = mapped_column(Boolean, default=False)
    require_login: Mapped[bool] = mapped_column(Boolean, default=False)
    show_login: Mapped[bool] = mapped_column(Boolean, default=False)
    redirection_url: Mapped[Optional[str]] = mapped_column(Text)
    help_url: Mapped[Optional[str]] = mapped_column(Text)

    version_categories: Mapped[list[VersionCategory]] = relationship(
        back_populates='version', order_by='VersionCategory.category_id'
    )
    version_basemaps: Mapped[list[VersionBasemap]] = relationship(
        back_populates='version', order_by='VersionBasemap.sort_order'
    )
    version_projections: Mapped[list[VersionProjection]] = relationship(
        back_populates='version', order_by='VersionProjection.sort_order'
    )
    version_layer_customisations: Mapped[list[VersionLayerCustomisation]] = relationship(
        back_populates='version', order_by='VersionLayerCustomisation.id'
    )

    def __repr__(self):
        return f'<Version {self.id} {self.slug!r}>'


# ───────── Layers and categories ─────────

class Attribution(Base):
    __tablename__ = 'attributions'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    attribution_html: Mapped[Optional[str]] = mapped_column(Text)


class LayerSource(Base):
    """A single source of data and its options."""

    __tablename__ = 'layer_sources'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    layer_source_type: Mapped[str] = mapped_column(String(50), default='XYZ')
    attribution_id: Mapped[Optional[int]] = mapped_column(ForeignKey('attributions.id'))

    attribution: Mapped[Optional[Attribution]] = relationship()
    layer_source_options: Mapped[list[LayerSourceOption]] = relationship(
        back_populates='layer_source', order_by='LayerSourceOption.id'
    )


class LayerSourceOption(Base):
    __tablename__ = 'layer_source_options'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    layer_source_id: Mapped[int] = mapped_column(ForeignKey('layer_sources.id'))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[Optional[str]] = mapped_column(Text)

    layer_source: Mapped[LayerSource] = relationship(back_populates='layer_source_options')


class Layer(Base):
    __tablename__ = 'layers'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    default_opacity: Mapped[int] = mapped_column(Integer, default=100)
    default_saturation: Mapped[int] = mapped_column(Integer, default=100)
    min_zoom: Mapped[Optional[int]] = mapped_column(Integer)
    max_zoom: Mapped[Optional[int]] = mapped_column(Integer)
    zindex: Mapped[int] = mapped_column(Integer, default=0)
    queryable: Mapped[bool] = mapped_column(Boolean, default=True)
    info_template: Mapped[Optional[str]] = mapped_column(Text)
    info_list_title_template: Mapped[Optional[str]] = mapped_column(Text)
    filterable: Mapped[bool] = mapped_column(Boolean, default=False)
    default_filter_editable: Mapped[bool] = mapped_column(Boolean, default=False)
    proxy_meta_requests: Mapped[bool] = mapped_column(Boolean, default=False)
    proxy_map_requests: Mapped[bool] = mapped_column(Boolean, default=False)
    refresh_interval: Mapped[Optional[int]] = mapped_column(Integer)
    layer_source_id: Mapped[Optional[int]] = mapped_column(ForeignKey('layer_sources.id'))

    layer_source: Mapped[Optional[LayerSource]] = relationship()


class Category(Base):
    __tablename__ = 'categories'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    order: Mapped[int] = mapped_column(Integer, default=0)

    layers: Mapped[list[CategoryLayer]] = relationship(
        back_populates='category', order_by='CategoryLayer.sort_order'
    )


class CategoryLayer(Base):
    __tablename__ = 'category_layers'

    category_id: Mapped[int] = mapped_column(ForeignKey('categories.id'), primary_key=True)
    layer_id: Mapped[int] = mapped_column(ForeignKey('layers.id'), primary_key=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    category: Mapped[Category] = relationship(back_populates='layers')
    layer: Mapped[Layer] = relationship()


class VersionCategory(Base):
    __tablename__ = 'version_categories'

    version_id: Mapped[int] = mapped_column(ForeignKey('versions.id'), primary_key=True)
    category_id: Mapped[int] = mapped_column(ForeignKey('categories.id'), primary_key=True)

    version: Mapped[Version] = relationship(back_populates='version_categories')
    category: Mapped[Category] = relationship()


class VersionLayerCustomisation(Base):
    """Per-version override of a layer's defaults; None means 'keep the layer's own'."""

    __tablename__ = 'version_layer_customisations'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    version_id: Mapped[int] = mapped_column(ForeignKey('versions.id'))
    category_id: Mapped[int] = mapped_column(ForeignKey('categories.id'))
    layer_id: Mapped[int] = mapped_column(ForeignKey('layers.id'))
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    default_opacity: Mapped[Optional[int]] = mapped_column(Integer)
    default_saturation: Mapped[Optional[int]] = mapped_column(Integer)
    sort_order: Mapped[Optional[int]] = mapped_column(Integer)
    min_zoom: Mapped[Optional[int]] = mapped_column(Integer)
    max_zoom: Mapped[Optional[int]] = mapped_column(Integer)

    version: Mapped[Version] = relationship(back_populates='version_layer_customisations')


# ───────── Basemaps and projections ─────────

class Basemap(Base):
    __tablename__ = 'basemaps'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    preview_image_url: Mapped[Optional[str]] = mapped_column(Text)
    min_zoom: Mapped[Optional[int]] = mapped_column(Integer)
    max_zoom: Mapped[Optional[int]] = mapped_column(Integer)
    layer_source_id: Mapped[Optional[int]] = mapped_column(ForeignKey('layer_sources.id'))

    layer_source: Mapped[Optional[LayerSource]] = relationship()


class VersionBasemap(Base):
    __tablename__ = 'version_basemaps'

    version_id: Mapped[int] = mapped_column(ForeignKey('versions.id'), primary_key=True)
    basemap_id: Mapped[int] = mapped_column(ForeignKey('basemaps.id'), primary_key=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    default_opacity: Mapped[int] = mapped_column(Integer, default=100)
    default_saturation: Mapped[int] = mapped_column(Integer, default=100)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    version: Mapped[Version] = relationship(back_populates='version_basemaps')
    basemap: Mapped[Basemap] = relationship()


class Projection(Base):
    __tablename__ = 'projections'

    epsg_code: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    proj4_definition: Mapped[Optional[str]] = mapped_column(Text)
    default_rendered_decimal_places: Mapped[int] = mapped_column(Integer, default=0)


class VersionProjection(Base):
    __tablename__ = 'version_projections'

    version_id: Mapped[int] = mapped_column(ForeignKey('versions.id'), primary_key=True)
    projection_id: Mapped[int] = mapped_column(
        ForeignKey('projections.epsg_code'), primary_key=True
    )
    is_default_map_projection: Mapped[bool] = mapped_column(Boolean, default=False)
    is_default_viewer_projection: Mapped[bool] = mapped_column(Boolean, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    version: Mapped[Version] = relationship(back_populates='version_projections')
    projection: Mapped[Projection] = relationship()


# ───────── Access control ─────────

class URLAuthorizationRule(Base):
    __tablename__ = 'url_authorization_rules'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0)


class VersionUser(Base):
    __tablename__ = 'version_users'

    version_id: Mapped[int] = mapped_column(ForeignKey('versions.id'), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)

    version: Mapped[Version] = relationship()


class Role(Base):
    __tablename__ = 'roles'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    role_name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)


class ApplicationUserRole(Base):
    __tablename__ = 'application_user_roles'

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    role_id: Mapped[int] = mapped_column(ForeignKey('roles.id'), primary_key=True)

    role: Mapped[Role] = relationship()


# ───────── Auxiliary services ─────────

class ShortLink(Base):
    __tablename__ = 'short_links'

    short_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    full_url: Mapped[Optional[str]] = mapped_column(Text)


class ProxyAllowedHost(Base):
    __tablename__ = 'proxy_allowed_hosts'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    host: Mapped[str] = mapped_column(String(255), nullable=False)


class WebLayerServiceDefinition(Base):
    __tablename__ = 'web_layer_service_definitions'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), default='WMS')
    version: Mapped[Optional[str]] = mapped_column(String(20))
    category: Mapped[Optional[str]] = mapped_column(String(100))
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    proxy_meta_requests: Mapped[bool] = mapped_column(Boolean, default=False)
    proxy_map_requests: Mapped[bool] = mapped_column(Boolean, default=False)
    admin_only: Mapped[bool] = mapped_column(Boolean, default=False)


class Bookmark(Base):
    __tablename__ = 'bookmarks'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    x: Mapped[float] = mapped_column(nullable=False)
    y: Mapped[float] = mapped_column(nullable=False)
    zoom: Mapped[int] = mapped_column(Integer, default=0)
