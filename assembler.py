"""Builds the presentation model for a fully loaded version."""
import logging
from collections import OrderedDict

from exceptions import ConfigurationError
from viewmodels import (
    map_basemap,
    map_category,
    map_projection,
    map_url_authorization_rule,
    map_version,
)

logger = logging.getLogger(__name__)


def find_by_id(items, item_id):
    return next((item for item in items if item.id == item_id), None)


def remove_duplicate_layers(version, categories):
    """
    Keep only the first occurrence of each layer across the version's categories.

    Occurrences are visited in category order, then layer order within the
    category; later ones are removed from their category's layer list.
    """
    occurrences = OrderedDict()
    for version_category in version.version_categories:
        for category_layer in version_category.category.layers:
            occurrences.setdefault(category_layer.layer_id, []).append(category_layer)

    for layer_id, links in occurrences.items():
        for link in links[1:]:
            logger.warning(
                'Unhandled duplicate layer detected. Removing layer ID %s from category %s',
                layer_id, link.category_id,
            )
            category = find_by_id(categories, link.category_id)
            if category is not None:
                category.layers = [l for l in category.layers if l.id != layer_id]


def apply_customisations(version, categories):
    for customisation in version.version_layer_customisations:
        category = find_by_id(categories, customisation.category_id)
        if category is None:
            continue
        layer = find_by_id(category.layers, customisation.layer_id)
        if layer is None:
            continue

        layer.is_default = customisation.is_default
        if customisation.default_opacity is not None:
            layer.default_opacity = customisation.default_opacity
        if customisation.default_saturation is not None:
            layer.default_saturation = customisation.default_saturation
        if customisation.sort_order is not None:
            layer.sort_order = customisation.sort_order
        if customisation.min_zoom is not None:
            layer.min_zoom = customisation.min_zoom
        if customisation.max_zoom is not None:
            layer.max_zoom = customisation.max_zoom


def ensure_default_projection(version, projections):
    if not projections:
        raise ConfigurationError(
            f'No projections were defined for version {version.name}. '
            'This is an invalid configuration.',
            version_name=version.name,
        )
    if not any(p.is_default_map_projection for p in projections):
        projections[0].is_default_map_projection = True
        logger.warning(
            'Version %s does not have a default map projection set. '
            'First projection has been automatically selected',
            version.name,
        )


def assemble_version(version, url_authorization_rules):
    """Merge a version's categories, layers, basemaps and projections into a VersionViewModel."""
    basemaps = [map_basemap(vb) for vb in version.version_basemaps]
    categories = [map_category(vc) for vc in version.version_categories]
    projections = [map_projection(vp) for vp in version.version_projections]

    remove_duplicate_layers(version, categories)
    apply_customisations(version, categories)
    ensure_default_projection(version, projections)

    view_model = map_version(version)
    view_model.categories = categories
    view_model.basemaps = basemaps
    view_model.available_projections = projections
    view_model.url_authorization_rules = [
        map_url_authorization_rule(r) for r in url_authorization_rules
    ]
    return view_model
