"""Presentation models handed to the map view, and ORM → view-model mapping."""
from dataclasses import asdict, dataclass, field
from typing import Optional

import models


@dataclass
class LayerSourceViewModel:
    id: int
    name: str
    description: Optional[str] = None
    layer_source_type: Optional[str] = None
    attribution: Optional[str] = None
    options: dict = field(default_factory=dict)


@dataclass
class LayerViewModel:
    id: int
    name: str
    is_default: bool = False
    sort_order: int = 0
    min_zoom: Optional[int] = None
    max_zoom: Optional[int] = None
    zindex: int = 0
    default_opacity: int = 100
    default_saturation: int = 100
    queryable: bool = True
    info_template: Optional[str] = None
    info_list_title_template: Optional[str] = None
    filterable: bool = False
    default_filter_editable: bool = False
    proxy_meta_requests: bool = False
    proxy_map_requests: bool = False
    refresh_interval: Optional[int] = None
    layer_source: Optional[LayerSourceViewModel] = None


@dataclass
class CategoryViewModel:
    id: int
    name: str
    description: Optional[str] = None
    order: int = 0
    layers: list = field(default_factory=list)


@dataclass
class BasemapViewModel:
    id: int
    name: str
    description: Optional[str] = None
    preview_image_url: Optional[str] = None
    is_default: bool = False
    default_opacity: int = 100
    default_saturation: int = 100
    sort_order: int = 0
    min_zoom: Optional[int] = None
    max_zoom: Optional[int] = None
    layer_source: Optional[LayerSourceViewModel] = None


@dataclass
class ProjectionViewModel:
    epsg_code: int
    name: str
    description: Optional[str] = None
    proj4_definition: Optional[str] = None
    default_rendered_decimal_places: int = 0
    is_default_map_projection: bool = False
    is_default_viewer_projection: bool = False


@dataclass
class URLAuthorizationRuleViewModel:
    id: int
    url: str
    priority: int = 0


@dataclass
class VersionViewModel:
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    help_url: Optional[str] = None
    require_login: bool = False
    show_login: bool = False
    app_root: str = ''
    categories: list = field(default_factory=list)
    basemaps: list = field(default_factory=list)
    available_projections: list = field(default_factory=list)
    url_authorization_rules: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# ───────── Mapping ─────────

def map_layer_source(source: Optional[models.LayerSource]) -> Optional[LayerSourceViewModel]:
    if source is None:
        return None
    return LayerSourceViewModel(
        id=source.id,
        name=source.name,
        description=source.description,
        layer_source_type=source.layer_source_type,
        attribution=source.attribution.attribution_html if source.attribution else None,
        options={o.name: o.value for o in source.layer_source_options},
    )


def map_layer(link: models.CategoryLayer) -> LayerViewModel:
    layer = link.layer
    return LayerViewModel(
        id=layer.id,
        name=layer.name,
        is_default=layer.is_default,
        sort_order=link.sort_order,
        min_zoom=layer.min_zoom,
        max_zoom=layer.max_zoom,
        zindex=layer.zindex,
        default_opacity=layer.default_opacity,
        default_saturation=layer.default_saturation,
        queryable=layer.queryable,
        info_template=layer.info_template,
        info_list_title_template=layer.info_list_title_template,
        filterable=layer.filterable,
        default_filter_editable=layer.default_filter_editable,
        proxy_meta_requests=layer.proxy_meta_requests,
        proxy_map_requests=layer.proxy_map_requests,
        refresh_interval=layer.refresh_interval,
        layer_source=map_layer_source(layer.layer_source),
    )


def map_category(link: models.VersionCategory) -> CategoryViewModel:
    category = link.category
    return CategoryViewModel(
        id=category.id,
        name=category.name,
        description=category.description,
        order=category.order,
        layers=[map_layer(cl) for cl in category.layers],
    )


def map_basemap(link: models.VersionBasemap) -> BasemapViewModel:
    basemap = link.basemap
    return BasemapViewModel(
        id=basemap.id,
        name=basemap.name,
        description=basemap.description,
        preview_image_url=basemap.preview_image_url,
        is_default=link.is_default,
        default_opacity=link.default_opacity,
        default_saturation=link.default_saturation,
        sort_order=link.sort_order,
        min_zoom=basemap.min_zoom,
        max_zoom=basemap.max_zoom,
        layer_source=map_layer_source(basemap.layer_source),
    )


def map_projection(link: models.VersionProjection) -> ProjectionViewModel:
    projection = link.projection
    return ProjectionViewModel(
        epsg_code=projection.epsg_code,
        name=projection.name,
        description=projection.description,
        proj4_definition=projection.proj4_definition,
        default_rendered_decimal_places=projection.default_rendered_decimal_places,
        is_default_map_projection=link.is_default_map_projection,
        is_default_viewer_projection=link.is_default_viewer_projection,
    )


def map_url_authorization_rule(rule: models.URLAuthorizationRule) -> URLAuthorizationRuleViewModel:
    return URLAuthorizationRuleViewModel(id=rule.id, url=rule.url, priority=rule.priority)


def map_version(version: models.Version) -> VersionViewModel:
    """Top-level version fields only; collections are filled in by the assembler."""
    return VersionViewModel(
        id=version.id,
        name=version.name,
        slug=version.slug,
        description=version.description,
        help_url=version.help_url,
        require_login=version.require_login,
        show_login=version.show_login,
    )
