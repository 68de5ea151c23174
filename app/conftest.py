"""
Project-wide fixtures shared by every app's tests.

Each test gets its own MediaStore under tmp_path, installed as the
process-wide store, so uploads never touch a shared directory, and its own
in-memory channel layer, so realtime events never leak between tests.
"""

import pytest
from channels import DEFAULT_CHANNEL_LAYER
from channels.layers import InMemoryChannelLayer, channel_layers

from media.storage import MediaStore, get_media_store, set_media_store


@pytest.fixture(autouse=True)
def media_store(tmp_path):
    """Fresh, initialized media store for the duration of one test."""
    previous = get_media_store()
    store = MediaStore.initialize(
        root=str(tmp_path / "uploads"),
        base_url="/media/",
        public_host="http://testserver",
    )
    set_media_store(store)
    yield store
    set_media_store(previous)


@pytest.fixture(autouse=True)
def channel_layer():
    """Fresh in-memory channel layer for the duration of one test."""
    layer = InMemoryChannelLayer()
    previous = channel_layers.set(DEFAULT_CHANNEL_LAYER, layer)
    yield layer
    if previous is None:
        channel_layers.backends.pop(DEFAULT_CHANNEL_LAYER, None)
    else:
        channel_layers.set(DEFAULT_CHANNEL_LAYER, previous)
