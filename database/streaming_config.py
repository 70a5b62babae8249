"""Streaming platform preferences: which platforms count and in which order"""
import json
import logging
import os

from config import Config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    'platforms': [],
    'hide_rent_buy_if_streaming': True,
    'hide_buy_if_rent': False,
    'hide_disabled_platforms': False
}


def get_streaming_config():
    path = os.path.join(Config.DATA_DIR, Config.STREAMING_CONFIG_FILE)
    config = dict(DEFAULT_CONFIG)

    if not os.path.exists(path):
        return config

    try:
        with open(path, 'r', encoding='utf-8') as f:
            config.update(json.load(f))
    except (OSError, ValueError) as e:
        logger.error(f"Error loading streaming config {path}: {e}")

    return config


def _platform_index(config, name):
    for index, platform in enumerate(config['platforms']):
        if platform.get('name') == name:
            return index
    return None


def sort_providers_by_preference(providers, config=None):
    """Configured platforms first, in config order; the rest keep their order"""
    config = config or get_streaming_config()
    unlisted = len(config['platforms'])

    def priority(provider):
        index = _platform_index(config, provider.get('provider'))
        return unlisted if index is None else index

    return sorted(providers, key=priority)


def filter_enabled_providers(providers, config=None):
    config = config or get_streaming_config()

    if not config['hide_disabled_platforms']:
        return list(providers)

    enabled = {p.get('name') for p in config['platforms'] if p.get('enabled')}
    return [p for p in providers if p.get('provider') in enabled]


def get_best_provider(providers, config=None):
    if not providers:
        return None

    config = config or get_streaming_config()
    enabled = filter_enabled_providers(providers, config)
    if not enabled:
        return None

    return sort_providers_by_preference(enabled, config)[0]


def has_enabled_providers(providers, config=None):
    if not providers:
        return False
    return len(filter_enabled_providers(providers, config)) > 0


def should_show_rent_buy(has_streaming, config=None):
    config = config or get_streaming_config()
    return not (config['hide_rent_buy_if_streaming'] and has_streaming)


def should_show_buy(has_rent, config=None):
    config = config or get_streaming_config()
    return not (config['hide_buy_if_rent'] and has_rent)
