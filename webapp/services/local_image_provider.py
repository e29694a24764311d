"""Flask アプリ単位で LocalImageProviderPlugin を保持する."""

import threading

from flask import current_app

from application.local_image_provider import LocalImageProviderPlugin, create_local_image_provider

EXTENSION_KEY = "local_image_provider"

_creation_lock = threading.Lock()


def get_local_image_provider() -> LocalImageProviderPlugin:
    """現在のアプリに紐づくプラグインを返す (初回呼び出し時に生成)."""

    app = current_app._get_current_object()
    plugin = app.extensions.get(EXTENSION_KEY)
    if plugin is not None:
        return plugin
    with _creation_lock:
        plugin = app.extensions.get(EXTENSION_KEY)
        if plugin is None:
            plugin = create_local_image_provider()
            app.extensions[EXTENSION_KEY] = plugin
    return plugin
