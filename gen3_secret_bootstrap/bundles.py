# -*- coding: utf-8 -*-
"""
Builders for each kind of secret the bootstrapper seeds.

A builder knows the name of its secret, the feature flag gating it, the inputs it must
have, and how to compute a fresh payload. It never writes to the store; the
bootstrapper does that with create-if-absent and tells the builder when its payload
was actually stored so later builders can reuse the generated values.

Payload formats are read by the Gen3 services through the secret-sync agent and must
stay exactly as written here.

Bundle kinds in the order they are attempted

service db        <project>-<env>-<service>                one per configured service
metadata-g3auto   metadata service db creds and gateway admin login
wts-g3auto        workspace token service app credentials
pelicanservice    pelican export bucket pointer, optional static keys
manifestservice   manifest bucket pointer
audit-g3auto      audit service config.yaml
ssjdispatcher     dispatcher job config with indexd and metadata logins
indexd-service    indexd service user tokens, always attempted
fence-jwt-key     fence RS256 signing key, plain PEM
"""

import base64
from abc import ABC, abstractmethod

from . import inputs
from . import names
from .extractors import (
    extract_admin_password_from_metadata_bundle,
    extract_password_from_dispatcher_bundle,
)
from .generators import (
    generate_password,
    generate_random_bytes_base64,
    generate_signing_key_pair,
)

PLACEHOLDER = "REPLACE_ME"


class PassState:
    """Values generated or discovered during one bootstrap pass.

    Holds the passwords this pass stored so dependent bundles stay consistent without
    re-reading the store, and reads through to the store for secrets created by an
    earlier pass. Discarded with the pass.
    """

    def __init__(self, store, context, db_host, db_port):
        self.store = store
        self.context = context
        self.db_host = db_host
        self.db_port = db_port
        self.db_passwords = {}
        self.gateway_admin_password = None
        self.dispatcher_password = None

    def db_password(self, service):
        """Password of a per-service db credential, None if there is no such secret."""
        if self.db_passwords.get(service):
            return self.db_passwords[service]
        secret = self.store.try_read_json(
            names.service_db_secret_name(self.context.project, self.context.env_name, service)
        )
        if not secret:
            return None
        password = secret.get("password") or secret.get("Password")
        if isinstance(password, str) and password:
            return password
        return None

    def read_bundle(self, name):
        return self.store.try_read_json(name)


class BundleBuilder(ABC):
    """Abstract Base Class for one kind of bootstrapped secret.

    Attributes:
        kind (str): Name used in logs and errors.
        flag (str): Feature flag in ``create``; None means always attempted.
        plain (bool): Payload is a raw string rather than a JSON object.
    """

    kind = None
    flag = None
    plain = False

    def enabled(self, context):
        return self.flag is None or context.enabled(self.flag)

    def check_preconditions(self, context):
        """Raises MissingRequiredInput if a required input is absent."""
        return None

    @abstractmethod
    def secret_name(self, context):
        pass

    @abstractmethod
    def build(self, context, state):
        """Computes a fresh payload.

        Args:
            context (InvocationContext): Inputs to the pass.
            state (PassState): Values produced earlier in the pass.

        Returns:
            dict or str: The payload, a str only when ``plain`` is set.
        """
        return None

    def stored(self, context, state, payload):
        """Called once ``payload`` was stored by this pass."""
        return None


class ServiceDbCredentialBundle(BundleBuilder):
    def __init__(self, service):
        self.service = service
        self.kind = f"service:{service}"

    def secret_name(self, context):
        return names.service_db_secret_name(context.project, context.env_name, self.service)

    def build(self, context, state):
        return {
            "username": self.service,
            "password": generate_password(context.password_length),
            "host": str(state.db_host),
            "port": str(state.db_port),
            "database": self.service,
        }

    def stored(self, context, state, payload):
        state.db_passwords[self.service] = payload["password"]


class MetadataBundle(BundleBuilder):
    kind = names.METADATA_SUFFIX
    flag = inputs.METADATA_G3AUTO

    def check_preconditions(self, context):
        context.g3auto.metadata.validate(self.kind)

    def secret_name(self, context):
        return names.metadata_secret_name(context.project, context.env_name)

    def build(self, context, state):
        db_password = state.db_password("metadata") or generate_password(context.password_length)
        admin_password = generate_password(context.password_length)
        authz = base64.b64encode(f"gateway:{admin_password}".encode("utf-8")).decode("ascii")
        return {
            "dbcreds.json": {
                "db_host": str(state.db_host),
                "db_username": "metadata",
                "db_password": db_password,
                "db_database": "metadata",
            },
            "metadata.env": [
                "DEBUG=false",
                f"DB_HOST={state.db_host}",
                "DB_USER=metadata",
                f"DB_PASSWORD={db_password}",
                "DB_DATABASE=metadata",
                f"ADMIN_LOGINS=gateway:{admin_password}",
            ],
            "base64Authz.txt": authz,
        }

    def stored(self, context, state, payload):
        state.gateway_admin_password = extract_admin_password_from_metadata_bundle(payload)


class WtsBundle(BundleBuilder):
    kind = names.WTS_SUFFIX
    flag = inputs.WTS_G3AUTO

    def check_preconditions(self, context):
        context.g3auto.wts.validate(self.kind)

    def secret_name(self, context):
        return names.wts_secret_name(context.project, context.env_name)

    def build(self, context, state):
        wts = context.g3auto.wts
        return {
            "appcreds.json": {
                "wts_base_url": wts.wts_base_url or f"https://{wts.hostname}/wts/",
                "encryption_key": generate_random_bytes_base64(32),
                "secret_key": generate_random_bytes_base64(32),
                "fence_base_url": wts.fence_base_url or f"https://{wts.hostname}/user/",
                "oidc_client_id": wts.oidc_client_id or PLACEHOLDER,
                "oidc_client_secret": wts.oidc_client_secret or PLACEHOLDER,
                "external_oidc": [],
            }
        }


class PelicanBundle(BundleBuilder):
    """Bucket pointer for pelican exports.

    Access keys are written only when both halves are supplied; without them the
    service uses workload identity.
    """

    kind = names.PELICAN_SUFFIX
    flag = inputs.PELICANSERVICE_G3AUTO

    def check_preconditions(self, context):
        context.g3auto.pelican.validate(self.kind)

    def secret_name(self, context):
        return names.pelican_secret_name(context.project, context.env_name)

    def build(self, context, state):
        pelican = context.g3auto.pelican
        payload = {
            "manifest_bucket_name": pelican.bucket_name,
            "hostname": pelican.hostname,
        }
        if pelican.access_key_id and pelican.secret_access_key:
            payload["aws_access_key_id"] = pelican.access_key_id
            payload["aws_secret_access_key"] = pelican.secret_access_key
        return payload


class ManifestBundle(BundleBuilder):
    kind = names.MANIFEST_SUFFIX
    flag = inputs.MANIFESTSERVICE_G3AUTO

    def check_preconditions(self, context):
        context.g3auto.manifest.validate(self.kind)

    def secret_name(self, context):
        return names.manifest_secret_name(context.project, context.env_name)

    def build(self, context, state):
        manifest = context.g3auto.manifest
        return {
            "manifest_bucket_name": manifest.bucket_name,
            "hostname": manifest.hostname,
            "prefix": manifest.prefix or "",
        }


AUDIT_CONFIG_TEMPLATE = """SERVER:
  DEBUG: false
  PULL_FROM_QUEUE: false
  QUEUE_CONFIG:
    type: aws_sqs
    aws_sqs_config:
      sqs_url: {sqs_url}
      region: {region}
  PULL_FREQUENCY_SECONDS: 300
  AWS_CREDENTIALS: {{}}
QUERY_TIMEBOX_MAX_DAYS: null
QUERY_PAGE_SIZE: 1000
QUERY_USERNAMES: true"""


class AuditBundle(BundleBuilder):
    kind = names.AUDIT_SUFFIX
    flag = inputs.AUDIT_G3AUTO

    def check_preconditions(self, context):
        context.g3auto.audit.validate(self.kind)

    def secret_name(self, context):
        return names.audit_secret_name(context.project, context.env_name)

    def build(self, context, state):
        audit = context.g3auto.audit
        return {
            "config.yaml": AUDIT_CONFIG_TEMPLATE.format(
                sqs_url=audit.sqs_url, region=audit.region
            )
        }


class SsjDispatcherBundle(BundleBuilder):
    """Dispatcher job config.

    The indexing job logs in to indexd as ``ssj`` with the index db password and to the
    metadata service as ``gateway`` with the metadata db password unless either is
    supplied. With no db credential to borrow from a fresh password is generated.
    """

    kind = names.SSJ_SUFFIX
    flag = inputs.SSJDISPATCHER_CREDS

    def check_preconditions(self, context):
        context.g3auto.ssj.validate(self.kind)

    def secret_name(self, context):
        return names.ssj_secret_name(context.project, context.env_name)

    def build(self, context, state):
        ssj = context.g3auto.ssj
        indexd_password = (
            ssj.indexd_password
            or state.db_password("index")
            or generate_password(context.password_length)
        )
        metadata_password = (
            ssj.metadata_password
            or state.db_password("metadata")
            or generate_password(context.password_length)
        )
        return {
            "AWS": {"region": ssj.region},
            "SQS": {"url": ssj.sqs_url},
            "JOBS": [
                {
                    "name": "indexing",
                    "pattern": ssj.data_pattern or "",
                    "imageConfig": {
                        "url": "http://indexd-service/index",
                        "username": ssj.indexd_user or "ssj",
                        "password": indexd_password,
                        "metadataService": {
                            "url": "http://revproxy-service/mds",
                            "username": ssj.metadata_user or "gateway",
                            "password": metadata_password,
                        },
                    },
                    "RequestCPU": "500m",
                    "RequestMem": "0.5Gi",
                    "ServiceAccount": "ssjdispatcher-service-account",
                }
            ],
        }

    def stored(self, context, state, payload):
        state.dispatcher_password = extract_password_from_dispatcher_bundle(payload)


class IndexdServiceBundle(BundleBuilder):
    """Tokens indexd accepts from other services, always attempted.

    Each token resolves in priority order: static override, then

    fence, sheepdog   their db credential password
    ssj               the dispatcher indexing password, else the index db password
    gateway           the metadata admin password

    and anything still unresolved for a required user becomes the placeholder. Nothing
    here is randomly generated.
    """

    kind = names.INDEXD_SERVICE_SUFFIX

    def secret_name(self, context):
        return names.indexd_service_secret_name(context.project, context.env_name)

    def build(self, context, state):
        tokens = dict(context.indexd_service_static)

        for service in ("fence", "sheepdog"):
            if not tokens.get(service):
                password = state.db_password(service)
                if password:
                    tokens[service] = password

        if not tokens.get("ssj"):
            ssj = state.dispatcher_password
            if not ssj:
                ssj = extract_password_from_dispatcher_bundle(
                    state.read_bundle(names.ssj_secret_name(context.project, context.env_name))
                )
            ssj = ssj or state.db_password("index")
            if ssj:
                tokens["ssj"] = ssj

        if not tokens.get("gateway"):
            gateway = state.gateway_admin_password
            if not gateway:
                gateway = extract_admin_password_from_metadata_bundle(
                    state.read_bundle(names.metadata_secret_name(context.project, context.env_name))
                )
            if gateway:
                tokens["gateway"] = gateway

        for user in context.indexd_service_users:
            if not tokens.get(user):
                tokens[user] = PLACEHOLDER

        return tokens


class FenceJwtKeyBundle(BundleBuilder):
    """RSA private key for fence token signing, stored as the bare PEM text.

    The public key is derivable from the private key and is not stored.
    """

    kind = names.FENCE_JWT_KEY_SUFFIX
    flag = inputs.FENCE_JWT_PRIVATE_KEY
    plain = True

    def secret_name(self, context):
        return names.fence_jwt_key_secret_name(context.project, context.env_name)

    def build(self, context, state):
        return generate_signing_key_pair(2048).private_key_pem


def optional_bundles():
    """Optional bundle builders in the order they must be attempted."""
    return [
        MetadataBundle(),
        WtsBundle(),
        PelicanBundle(),
        ManifestBundle(),
        AuditBundle(),
        SsjDispatcherBundle(),
        IndexdServiceBundle(),
        FenceJwtKeyBundle(),
    ]
