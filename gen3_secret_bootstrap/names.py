# -*- coding: utf-8 -*-
"""Deterministic secret names.

Every name is a pure function of project, environment and bundle kind. The
secret-sync agent looks these names up verbatim so they must not change.
"""

METADATA_SUFFIX = "metadata-g3auto"
WTS_SUFFIX = "wts-g3auto"
PELICAN_SUFFIX = "pelicanservice-g3auto"
MANIFEST_SUFFIX = "manifestservice-g3auto"
AUDIT_SUFFIX = "audit-g3auto"
SSJ_SUFFIX = "ssjdispatcher-creds"
INDEXD_SERVICE_SUFFIX = "indexd-service"
FENCE_JWT_KEY_SUFFIX = "fence-jwt-key"


def secret_name(project, env_name, suffix):
    return f"{project}-{env_name}-{suffix}"


def service_db_secret_name(project, env_name, service):
    return secret_name(project, env_name, service)


def metadata_secret_name(project, env_name):
    return secret_name(project, env_name, METADATA_SUFFIX)


def wts_secret_name(project, env_name):
    return secret_name(project, env_name, WTS_SUFFIX)


def pelican_secret_name(project, env_name):
    return secret_name(project, env_name, PELICAN_SUFFIX)


def manifest_secret_name(project, env_name):
    return secret_name(project, env_name, MANIFEST_SUFFIX)


def audit_secret_name(project, env_name):
    return secret_name(project, env_name, AUDIT_SUFFIX)


def ssj_secret_name(project, env_name):
    return secret_name(project, env_name, SSJ_SUFFIX)


def indexd_service_secret_name(project, env_name):
    return secret_name(project, env_name, INDEXD_SERVICE_SUFFIX)


def fence_jwt_key_secret_name(project, env_name):
    return secret_name(project, env_name, FENCE_JWT_KEY_SUFFIX)


def master_secret_name(project, env_name):
    return f"{project}-master-{env_name}-rds"


def physical_resource_id(project, env_name):
    return f"gen3-secrets-{project}-{env_name}"

