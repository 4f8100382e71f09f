import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable ("true"/"false", case-insensitive)."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-change-in-production')
    DATABASE_URL = os.environ.get(
        'DATABASE_URL', 'sqlite:///' + os.path.join(BASE_DIR, 'maps.db')
    )
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Where anonymous users are sent when a version requires login
    LOGIN_URL = os.environ.get('LOGIN_URL', '/account/login')
    ADMIN_ROLE = os.environ.get('ADMIN_ROLE', 'MapAdmin')

    # Optional "authenticate with external map services" behaviour
    AUTHENTICATE_WITH_MAP_SERVICES = env_flag('AUTHENTICATE_WITH_MAP_SERVICES')
    MAP_SERVICES_ACCESS_URL = os.environ.get('MAP_SERVICES_ACCESS_URL', '')

    CREATE_SCHEMA = env_flag('CREATE_SCHEMA')
    CACHE_MAX_ENTRIES = int(os.environ.get('CACHE_MAX_ENTRIES', '1000'))


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    DATABASE_URL = 'sqlite://'
    AUTHENTICATE_WITH_MAP_SERVICES = False
    MAP_SERVICES_ACCESS_URL = ''
    CREATE_SCHEMA = True
