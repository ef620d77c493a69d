# -*- coding: utf-8 -*-
"""Parsing of the properties handed to one bootstrap pass.

The ``g3auto`` block is split into one small input class per bundle. Each is validated
only when its bundle is attempted so a disabled bundle never fails a pass.
"""

from dataclasses import dataclass, field

from . import config
from . import names
from .exceptions import MissingRequiredInput

REQUEST_CREATE = "Create"
REQUEST_UPDATE = "Update"
REQUEST_DELETE = "Delete"

# feature flags gating the optional bundles
METADATA_G3AUTO = "metadataG3auto"
WTS_G3AUTO = "wtsG3auto"
PELICANSERVICE_G3AUTO = "pelicanserviceG3auto"
MANIFESTSERVICE_G3AUTO = "manifestserviceG3auto"
AUDIT_G3AUTO = "auditGen3auto"
SSJDISPATCHER_CREDS = "ssjdispatcherCreds"
FENCE_JWT_PRIVATE_KEY = "fenceJwtPrivateKey"

DEFAULT_PASSWORD_LENGTH = 24
DEFAULT_SERVICES = [
    "index",
    "requestor",
    "fence",
    "peregrine",
    "wts",
    "audit",
    "manifestservice",
    "metadata",
    "arborist",
    "sheepdog",
]
DEFAULT_INDEXD_SERVICE_USERS = ["sheepdog", "fence", "ssj", "gateway"]


def _text(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _truthy(value):
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _string_list(value):
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    return [str(item).strip() for item in value if str(item).strip()]


def parse_features(value):
    """Turns ``create`` into a flag to bool mapping.

    Accepts a mapping (values may be stringified booleans) or a comma separated list of
    enabled flags such as ``"metadataG3auto,wtsG3auto"``.
    """
    if not value:
        return {}
    if isinstance(value, str):
        return {flag.strip(): True for flag in value.split(",") if flag.strip()}
    return {str(flag): _truthy(enabled) for flag, enabled in value.items()}


@dataclass
class MetadataInputs:
    hostname: str = None

    def validate(self, bundle):
        if not self.hostname:
            raise MissingRequiredInput(bundle, "g3auto.hostname")


@dataclass
class WtsInputs:
    hostname: str = None
    wts_base_url: str = None
    fence_base_url: str = None
    oidc_client_id: str = None
    oidc_client_secret: str = None

    def validate(self, bundle):
        if not self.hostname:
            raise MissingRequiredInput(bundle, "g3auto.hostname")


@dataclass
class PelicanInputs:
    hostname: str = None
    bucket_name: str = None
    access_key_id: str = None
    secret_access_key: str = None

    def validate(self, bundle):
        if not self.hostname:
            raise MissingRequiredInput(bundle, "g3auto.hostname")
        if not self.bucket_name:
            raise MissingRequiredInput(bundle, "g3auto.pelicanBucketName")


@dataclass
class ManifestInputs:
    hostname: str = None
    bucket_name: str = None
    prefix: str = None

    def validate(self, bundle):
        if not self.hostname:
            raise MissingRequiredInput(bundle, "g3auto.hostname")
        if not self.bucket_name:
            raise MissingRequiredInput(bundle, "g3auto.manifestBucketName")


@dataclass
class AuditInputs:
    sqs_url: str = None
    region: str = None

    def validate(self, bundle):
        if not self.sqs_url:
            raise MissingRequiredInput(bundle, "g3auto.auditSqsUrl")


@dataclass
class SsjInputs:
    sqs_url: str = None
    region: str = None
    data_pattern: str = None
    indexd_user: str = None
    indexd_password: str = None
    metadata_user: str = None
    metadata_password: str = None

    def validate(self, bundle):
        if not self.sqs_url:
            raise MissingRequiredInput(bundle, "g3auto.ssjSqsUrl")


@dataclass
class G3autoInputs:
    metadata: MetadataInputs
    wts: WtsInputs
    pelican: PelicanInputs
    manifest: ManifestInputs
    audit: AuditInputs
    ssj: SsjInputs

    @classmethod
    def from_dict(cls, g3auto):
        g3auto = g3auto or {}
        hostname = _text(g3auto.get("hostname"))
        region = _text(g3auto.get("region")) or config.region()
        return cls(
            metadata=MetadataInputs(hostname=hostname),
            wts=WtsInputs(
                hostname=hostname,
                wts_base_url=_text(g3auto.get("wtsBaseUrl")),
                fence_base_url=_text(g3auto.get("fenceBaseUrl")),
                oidc_client_id=_text(g3auto.get("oidcClientId")),
                oidc_client_secret=_text(g3auto.get("oidcClientSecret")),
            ),
            pelican=PelicanInputs(
                hostname=hostname,
                bucket_name=_text(g3auto.get("pelicanBucketName")),
                access_key_id=_text(g3auto.get("pelicanAccessKeyId")),
                secret_access_key=_text(g3auto.get("pelicanSecretAccessKey")),
            ),
            manifest=ManifestInputs(
                hostname=hostname,
                bucket_name=_text(g3auto.get("manifestBucketName")),
                prefix=_text(g3auto.get("manifestPrefix")),
            ),
            audit=AuditInputs(sqs_url=_text(g3auto.get("auditSqsUrl")), region=region),
            ssj=SsjInputs(
                sqs_url=_text(g3auto.get("ssjSqsUrl")),
                region=region,
                data_pattern=_text(g3auto.get("ssjDataPattern")),
                indexd_user=_text(g3auto.get("ssjIndexdUser")),
                indexd_password=_text(g3auto.get("ssjIndexdPassword")),
                metadata_user=_text(g3auto.get("ssjMetadataUser")),
                metadata_password=_text(g3auto.get("ssjMetadataPassword")),
            ),
        )


@dataclass
class InvocationContext:
    """Everything one bootstrap pass needs. Lives only for the pass."""

    project: str
    env_name: str
    services: list
    master_secret_name: str
    g3auto: G3autoInputs
    request_type: str = REQUEST_CREATE
    password_length: int = DEFAULT_PASSWORD_LENGTH
    encryption_key_id: str = None
    tags: dict = field(default_factory=dict)
    db_host_override: str = None
    db_port_override: str = None
    create: dict = field(default_factory=dict)
    indexd_service_users: list = field(default_factory=lambda: list(DEFAULT_INDEXD_SERVICE_USERS))
    indexd_service_static: dict = field(default_factory=dict)

    @property
    def physical_resource_id(self):
        return names.physical_resource_id(self.project, self.env_name)

    def enabled(self, flag):
        return bool(self.create.get(flag))

    @classmethod
    def from_properties(cls, props, request_type=REQUEST_CREATE):
        """Builds a context from custom resource style properties.

        Raises:
            MissingRequiredInput: project or envName is missing or passwordLength is not
                a positive integer.
        """
        project = _text(props.get("project"))
        env_name = _text(props.get("envName"))
        if not project:
            raise MissingRequiredInput("invocation", "project")
        if not env_name:
            raise MissingRequiredInput("invocation", "envName")

        password_length = props.get("passwordLength")
        if password_length is None or password_length == "":
            password_length = DEFAULT_PASSWORD_LENGTH
        try:
            password_length = int(str(password_length).strip())
        except ValueError:
            password_length = 0
        if password_length <= 0:
            raise MissingRequiredInput("invocation", "passwordLength as a positive integer")

        services = _string_list(props.get("services"))
        if services is None:
            services = list(DEFAULT_SERVICES)

        static = {}
        for user, token in (props.get("indexdServiceStatic") or {}).items():
            if isinstance(token, str) and token:
                static[user] = token

        return cls(
            project=project,
            env_name=env_name,
            services=services,
            master_secret_name=_text(props.get("masterSecretName"))
            or names.master_secret_name(project, env_name),
            g3auto=G3autoInputs.from_dict(props.get("g3auto")),
            request_type=request_type or REQUEST_CREATE,
            password_length=password_length,
            encryption_key_id=_text(props.get("kmsKeyId") or props.get("encryptionKeyId")),
            tags={str(k): str(v) for k, v in (props.get("tags") or {}).items()},
            db_host_override=_text(props.get("dbHostOverride")),
            db_port_override=_text(props.get("dbPortOverride")),
            create=parse_features(props.get("create")),
            indexd_service_users=_string_list(props.get("indexdServiceUsers"))
            or list(DEFAULT_INDEXD_SERVICE_USERS),
            indexd_service_static=static,
        )


def is_delete(request_type):
    return str(request_type or "").strip().lower() == REQUEST_DELETE.lower()


def merge_properties(defaults, props):
    """Lays ``props`` over ``defaults``.

    ``g3auto`` and ``create`` merge key by key, everything else in ``props`` replaces
    the default outright.
    """
    merged = dict(defaults or {})
    for key, value in (props or {}).items():
        if key == "create":
            merged[key] = {**parse_features(merged.get(key)), **parse_features(value)}
        elif key == "g3auto" and isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged
