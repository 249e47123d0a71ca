"""
Configuration loading for the gallery API server.

Values come from gallery_config.json (or the file named by GALLERY_CONFIG),
merged over defaults, then overridden by environment variables.
"""

import os
import json
import copy
import logging
import secrets

logger = logging.getLogger(__name__)

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_CONFIG_PATH = os.environ.get('GALLERY_CONFIG', os.path.join(_PROJECT_ROOT, 'gallery_config.json'))

JWT_ALGORITHM = "HS256"

DEFAULTS = {
    'db_path': os.path.join('data', 'gallery.db'),
    'scan_dir': 'photos',
    'public_dir': 'public',
    'admin_username': 'admin',
    'admin_password': '',
    'auth_secret': '',
    'session_days': 7,
    'secure_cookies': False,
    'domain': 'http://localhost:8000',
    'trusted_proxy_headers': ['x-forwarded-for', 'x-real-ip', 'fly-client-ip'],
    'geo_lookup_url': 'https://ipapi.co/{ip}/country_name/',
    'geo_timeout_seconds': 2.0,
    'images': {
        'grid_size': 600,
        'grid_quality': 82,
        'large_size': 1200,
        'large_quality': 85,
        'blur_size': 16,
        'blur_quality': 20,
    },
}

# environment variable -> config key
ENV_OVERRIDES = {
    'DB_PATH': 'db_path',
    'SCAN_DIR': 'scan_dir',
    'PUBLIC_DIR': 'public_dir',
    'ADMIN_USERNAME': 'admin_username',
    'ADMIN_PASSWORD': 'admin_password',
    'AUTH_SECRET': 'auth_secret',
    'DOMAIN': 'domain',
}


def merge_defaults(config):
    """Fill missing keys (one level into nested dicts) from DEFAULTS."""
    merged = dict(config or {})
    for key, value in DEFAULTS.items():
        if key not in merged:
            merged[key] = copy.deepcopy(value)
        elif isinstance(value, dict):
            section = dict(merged[key] or {})
            for k, v in value.items():
                if k not in section:
                    section[k] = v
            merged[key] = section
    return merged


def _read_config_file(path):
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read {path}: {e}")
        return {}


def _ensure_auth_secret(config, path):
    """Generate a missing auth_secret, persisting it when the config file exists."""
    if config.get('auth_secret'):
        return config
    config['auth_secret'] = secrets.token_hex(32)
    if os.path.isfile(path):
        file_config = _read_config_file(path)
        file_config['auth_secret'] = config['auth_secret']
        with open(path, 'w') as f:
            json.dump(file_config, f, indent=2)
        logger.info(f"Generated auth_secret in {path}")
    return config


def load_config(config=None, path=None, environ=None):
    """
    Build the effective configuration.

    Args:
        config: explicit settings dict; when given, neither the file nor the
            environment is read
        path: config file to read (default gallery_config.json / GALLERY_CONFIG)
        environ: environment mapping for overrides (default os.environ)

    Returns:
        dict with every key in DEFAULTS present
    """
    path = path or _CONFIG_PATH
    environ = os.environ if environ is None else environ

    if config is not None:
        config = merge_defaults(config)
        if not config['auth_secret']:
            config['auth_secret'] = secrets.token_hex(32)
        return config

    config = merge_defaults(_read_config_file(path))
    for env_name, key in ENV_OVERRIDES.items():
        if environ.get(env_name):
            config[key] = environ[env_name]
    return _ensure_auth_secret(config, path)
