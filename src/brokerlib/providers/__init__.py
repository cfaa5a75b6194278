"""Broker provider implementations."""

import importlib
from urllib.parse import urlparse

from .. import config
from .base import (
    ProviderError,
    IllegalStateError,
    InvalidDestinationError,
    InvalidClientIdError,
)


_MODULES = {
    "memory": "memory",
    "amqp": "amqp",
    "amqps": "amqp",
}


def get(name=None, url=None):
    """Return the provider module for *name*. Without a name the scheme of
    *url* decides, and failing that the BROKERLIB_PROVIDER environment
    variable."""

    if name is None and url:
        scheme = urlparse(url).scheme
        if scheme in _MODULES:
            name = scheme

    if name is None:
        name = config.PROVIDER

    try:
        module = _MODULES[name]
    except KeyError:
        raise ValueError(f"unknown broker provider: {name!r}")

    return importlib.import_module("." + module, __name__)


def connect(name=None, url=None, username=None, password=None):
    """Open and return a provider connection."""

    provider = get(name, url)
    return provider.Connection(url, username, password)
