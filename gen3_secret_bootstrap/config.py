# -*- coding: utf-8 -*-
"""Environment settings.

Lookups return ``None`` for an unset or blank variable rather than raising, so callers
choose their own fallback.
"""

import os

GCP_PROJECT = "GEN3_SECRETS_GCP_PROJECT"
TIMEOUT = "GEN3_SECRETS_TIMEOUT"
REGION = "AWS_REGION"
LOG_LEVEL = "LOG_LEVEL"

DEFAULT_TIMEOUT = 30.0
DEFAULT_REGION = "ap-southeast-2"


def optional(name):
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def timeout():
    value = optional(TIMEOUT)
    return float(value) if value is not None else DEFAULT_TIMEOUT


def region():
    return optional(REGION) or DEFAULT_REGION


def log_level():
    return (optional(LOG_LEVEL) or "INFO").upper()
