import logging

from flask import Blueprint, jsonify, request, url_for
from werkzeug.exceptions import BadRequest, Forbidden, HTTPException, NotFound, Unauthorized

import auth
import database
from exceptions import PUBLIC_MESSAGE, MapServerError
from repository import is_url_current_application, sanitize_log_value

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__, url_prefix='/api')


def version_summary(version) -> dict:
    return {
        'id': version.id,
        'name': version.name,
        'description': version.description,
        'slug': version.slug,
        'requireLogin': version.require_login,
    }


@api_bp.errorhandler(HTTPException)
def json_error(e):
    return jsonify({'error': e.name, 'message': e.description}), e.code


@api_bp.errorhandler(MapServerError)
def map_server_error(e):
    logger.error('Version could not be assembled: %s', e)
    return jsonify({'error': 'Internal Server Error', 'message': PUBLIC_MESSAGE}), 500


@api_bp.route('/versions')
def versions():
    repository = database.get_repository()
    user_versions = repository.get_versions_list_for_user(auth.current_user_id())
    return jsonify([version_summary(v) for v in user_versions])


@api_bp.route('/version/<int:version_id>')
def version_config(version_id):
    repository = database.get_repository()
    version = repository.get_version(version_id)
    if version is None or not version.enabled:
        raise NotFound(description=f'Version {version_id} not found')
    if not auth.can_access_version(repository, version):
        if not auth.is_authenticated():
            raise Unauthorized()
        raise Forbidden()

    view_model = repository.get_version_view_model(version)
    view_model.app_root = f'{request.host}{request.script_root}/'
    return jsonify(view_model.to_dict())


@api_bp.route('/shortlink', methods=['POST'])
def create_short_link():
    payload = request.get_json(silent=True) or {}
    url = payload.get('url')
    if not url:
        raise BadRequest(description='A url is required')

    if not is_url_current_application(url, request.host.split(':')[0], _request_port(), request.scheme):
        logger.warning('Rejected short link for foreign url %s', sanitize_log_value(url))
        raise BadRequest(description='Short links can only be created for this application')

    short_link = database.get_repository().create_short_link(url)
    if short_link is None:
        return jsonify({'error': 'Internal Server Error', 'message': 'Could not generate a short link'}), 500

    return jsonify({
        'shortId': short_link.short_id,
        'shortUrl': url_for('map.user_short_link', short_id=short_link.short_id, _external=True),
    }), 201


@api_bp.route('/webservices')
def web_layer_services():
    repository = database.get_repository()
    definitions = repository.get_web_layer_service_definitions(auth.user_is_admin(repository))
    return jsonify([
        {
            'id': d.id,
            'name': d.name,
            'description': d.description,
            'url': d.url,
            'type': d.type,
            'version': d.version,
            'category': d.category,
            'sortOrder': d.sort_order,
            'proxyMetaRequests': d.proxy_meta_requests,
            'proxyMapRequests': d.proxy_map_requests,
        }
        for d in definitions
    ])


@api_bp.route('/proxy/allowed')
def proxy_allowed():
    url = request.args.get('url', '')
    return jsonify({'allowed': database.get_repository().is_proxy_host_allowed(url)})


@api_bp.route('/bookmarks')
def bookmarks():
    user_id = auth.current_user_id()
    if user_id is None:
        raise Unauthorized()
    return jsonify([
        {'id': b.id, 'name': b.name, 'x': b.x, 'y': b.y, 'zoom': b.zoom}
        for b in database.get_repository().get_bookmarks_for_user(user_id)
    ])


def _request_port():
    """Explicit port of the current request, or None when the Host header has none."""
    host = request.host
    if ':' in host and not host.endswith(']'):
        try:
            return int(host.rsplit(':', 1)[1])
        except ValueError:
            return None
    return None
