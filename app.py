import logging
from urllib.parse import urlencode, urlsplit

from flask import (
    Blueprint,
    Flask,
    current_app,
    redirect,
    render_template,
    request,
)

import auth
import database
from api.index import api_bp
from config import Config
from exceptions import PUBLIC_MESSAGE, MapServerError
from repository import sanitize_log_value

logger = logging.getLogger(__name__)

map_bp = Blueprint('map', __name__)


def is_absolute_url(url) -> bool:
    """True for a well-formed absolute http(s) URL."""
    if not url:
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ('http', 'https') and bool(parts.netloc)


def login_challenge():
    """Send an anonymous user to sign in, returning here afterwards."""
    login_url = current_app.config['LOGIN_URL']
    return redirect(f"{login_url}?{urlencode({'next': request.full_path.rstrip('?')})}")


def map_services_context() -> dict:
    """Token and URL for the optional 'authenticate with map services' behaviour."""
    config = current_app.config
    if config.get('AUTHENTICATE_WITH_MAP_SERVICES') and config.get('MAP_SERVICES_ACCESS_URL'):
        return {
            'map_services_access_url': config['MAP_SERVICES_ACCESS_URL'],
            'map_services_access_token': auth.current_id_token(),
        }
    return {}


# ───────── Routes ─────────

@map_bp.route('/')
def default_version():
    return index('general')


@map_bp.route('/<slug1>')
@map_bp.route('/<slug1>/<slug2>')
@map_bp.route('/<slug1>/<slug2>/<slug3>')
def index(slug1, slug2=None, slug3=None):
    logger.info(
        'User requested version %s/%s/%s',
        sanitize_log_value(slug1), sanitize_log_value(slug2 or ''), sanitize_log_value(slug3 or ''),
    )
    repository = database.get_repository()

    version = repository.get_version_by_slug(slug1, slug2, slug3)
    if version is None:
        return render_template('version_not_found.html'), 404

    logger.info('Found version %s', version.name)

    if not version.enabled:
        return render_template('disabled.html', version=version)
    if is_absolute_url(version.redirection_url):
        return redirect(version.redirection_url)

    if not auth.can_access_version(repository, version):
        if not auth.is_authenticated():
            return login_challenge()
        return render_template('forbidden.html', version=version), 403

    full_version = repository.get_version(version.id)
    view_model = repository.get_version_view_model(full_version)
    view_model.app_root = f'{request.host}{request.script_root}/'

    return render_template(
        'index.html',
        version=view_model,
        version_config=view_model.to_dict(),
        **map_services_context(),
    )


@map_bp.route('/s/<short_id>')
def user_short_link(short_id):
    redirect_url = database.get_repository().get_full_url_from_short_id(short_id)
    if not is_absolute_url(redirect_url):
        return render_template('short_link_not_found.html'), 404
    return redirect(redirect_url)


# ───────── App factory ─────────

def create_app(config_object=Config, overrides: dict = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    database.init_app(app)
    app.register_blueprint(api_bp)
    app.register_blueprint(map_bp)
    app.register_error_handler(MapServerError, map_server_error)
    return app


def map_server_error(e):
    logger.error('Version could not be rendered: %s', e)
    return render_template('error.html', message=PUBLIC_MESSAGE), 500


if __name__ == '__main__':
    create_app().run(debug=True, port=8001)
