# -*- coding: utf-8 -*-
"""Function entry point.

The store and bootstrapper are built on the first invocation and reused for the life of
the process.
"""

import logging
import threading

from . import config
from .bootstrapper import SecretBootstrapper
from .store import SecretStore

_lock = threading.Lock()
_bootstrapper = None


def get_bootstrapper():
    global _bootstrapper

    with _lock:
        if _bootstrapper is None:
            logging.basicConfig(level=config.log_level())
            _bootstrapper = SecretBootstrapper(SecretStore())
        return _bootstrapper


def handler(event, context=None):
    return get_bootstrapper().on_event(event)
