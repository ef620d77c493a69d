# -*- coding: utf-8 -*-
"""Recover passwords embedded in bundles created by earlier passes.

These never raise on an unexpected shape, they return None and the caller picks a
fallback.
"""

import base64
import binascii

ADMIN_LOGINS_PREFIX = "ADMIN_LOGINS="
GATEWAY_USER = "gateway"
INDEXING_JOB = "indexing"


def _gateway_password(pair):
    user, sep, password = pair.partition(":")
    if sep and user.strip() == GATEWAY_USER and password:
        return password
    return None


def extract_admin_password_from_metadata_bundle(bundle):
    """Finds the gateway admin password in a metadata bundle.

    Looks for an ``ADMIN_LOGINS=user:password[,user:password...]`` line in the
    ``metadata.env`` list, then falls back to the base64 ``user:password`` in
    ``base64Authz.txt``.

    Args:
        bundle (dict): Parsed metadata bundle payload.

    Returns:
        str: The password for user ``gateway`` or None.
    """
    if not isinstance(bundle, dict):
        return None

    env_lines = bundle.get("metadata.env")
    if isinstance(env_lines, list):
        for line in env_lines:
            if not isinstance(line, str) or not line.startswith(ADMIN_LOGINS_PREFIX):
                continue
            for pair in line[len(ADMIN_LOGINS_PREFIX):].split(","):
                password = _gateway_password(pair.strip())
                if password:
                    return password
            break

    authz = bundle.get("base64Authz.txt")
    if isinstance(authz, str):
        try:
            plain = base64.b64decode(authz, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
        return _gateway_password(plain)

    return None


def extract_password_from_dispatcher_bundle(bundle):
    """Returns the indexing job password from a dispatcher bundle.

    Uses the job named ``indexing`` or, failing that, the first job.
    """
    if not isinstance(bundle, dict):
        return None
    jobs = bundle.get("JOBS")
    if not isinstance(jobs, list) or not jobs:
        return None

    job = next(
        (j for j in jobs if isinstance(j, dict) and j.get("name") == INDEXING_JOB),
        jobs[0],
    )
    if not isinstance(job, dict):
        return None
    image_config = job.get("imageConfig")
    if not isinstance(image_config, dict):
        return None
    password = image_config.get("password")
    if isinstance(password, str) and password:
        return password
    return None
