import os

from sqlalchemy.engine import URL

DB_HOST = '127.0.0.1'
DB_PORT = 3306


def database_uri(environ=None):
    """Build the SQLAlchemy URL from APP_DB_* credentials.

    DATABASE_URL, when set, is used as-is.
    """
    env = os.environ if environ is None else environ

    url = env.get('DATABASE_URL')
    if url:
        return url

    return URL.create(
        'mysql+pymysql',
        username=env.get('APP_DB_USERNAME', 'root'),
        password=env.get('APP_DB_PASSWORD', ''),
        host=DB_HOST,
        port=DB_PORT,
        database=env.get('APP_DB_NAME', 'inventory'),
    ).render_as_string(hide_password=False)


def load_config(environ=None):
    env = os.environ if environ is None else environ
    return {
        'SQLALCHEMY_DATABASE_URI': database_uri(env),
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'HOST': env.get('HOST', '0.0.0.0'),
        'PORT': int(env.get('PORT', 8010)),
        'DB_CONNECT_RETRIES': int(env.get('DB_CONNECT_RETRIES', 10)),
        'DB_CONNECT_DELAY': float(env.get('DB_CONNECT_DELAY', 2)),
        'LOG_LEVEL': env.get('LOG_LEVEL', 'INFO').upper(),
    }
