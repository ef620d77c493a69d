# -*- coding: utf-8 -*-
"""Create-if-absent access to GCP Secret Manager.

The gateway never updates a payload and never deletes a secret it did not just create
empty. Secret Manager has no native create-if-absent so creation is check then create,
and an ``AlreadyExists`` from ``create_secret`` is a lost race with another bootstrap
pass, reported as "not created".

Creating a secret takes three calls::

    create_secret       the container, optionally with a customer managed key
    add_secret_version  the payload, with a crc32c checksum
    update_secret       labels (tags), best effort

Only the caller that won ``create_secret`` adds a version so two passes can never both
write a payload for the same name. If adding the version fails that caller deletes its
own empty container again so a retried pass creates the secret from scratch.
"""

import json
import logging
import re
import threading

import google.auth
import google_crc32c
from google.api_core import exceptions
from google.cloud import secretmanager, secretmanager_v1

from . import config
from .exceptions import NoActiveSecretVersion, StoreUnavailable

LABEL_MAX = 63


def normalise_label(value):
    """Maps a free form tag key or value onto the Secret Manager label charset.

    Labels allow lowercase letters, digits, ``_`` and ``-`` only, up to 63 characters.
    "/" and "." are common in tag values and are not allowed.
    """
    return re.sub(r"[^a-z0-9_-]", "_", str(value).lower())[:LABEL_MAX]


def tags_to_labels(tags):
    labels = {}
    for key, value in (tags or {}).items():
        label_key = normalise_label(key)
        if not label_key:
            continue
        labels[label_key] = normalise_label(value)
    return labels


class SecretStore:
    """Gateway onto the secret store used by one bootstrap process.

    Build one per process and hand it to the bootstrapper. Clients and credentials are
    held in thread-local storage as the store may be shared by concurrent invocations.

    Attributes:
        project_id (str): Project holding the secrets.
        timeout (float): Per call timeout in seconds.
    """

    def __init__(
        self,
        project_id=None,
        timeout=None,
        _credentials_callback=None,
        _client=None,
    ):
        """Initializes the SecretStore.

        Args:
            project_id (str, optional): Project holding the secrets. Defaults to the
                GEN3_SECRETS_GCP_PROJECT setting then the project of the credentials.
            timeout (float, optional): Per call timeout. Defaults to the
                GEN3_SECRETS_TIMEOUT setting or 30 seconds.
            _credentials_callback (callable, optional): A function that returns a
                tuple of (credentials, project_id). If not provided,
                `google.auth.default()` is used.
            _client (optional): A ready made Secret Manager client, used as is.
        """
        self._project_id = project_id or config.optional(config.GCP_PROJECT)
        self._timeout = timeout if timeout is not None else config.timeout()
        self._credentials_callback = _credentials_callback
        self._shared_client = _client
        self.ns = threading.local()

    @property
    def timeout(self):
        return self._timeout

    @property
    def credentials(self):
        if not hasattr(self.ns, "_credentials"):
            if self._credentials_callback is not None:
                _credentials, _project_id = self._credentials_callback()
            else:
                _credentials, _project_id = google.auth.default()
            self.ns._credentials = _credentials
            self.ns._project_id = _project_id
        return self.ns._credentials

    @property
    def project_id(self):
        if self._project_id:
            return self._project_id
        if not hasattr(self.ns, "_project_id"):
            _ = self.credentials
        return self.ns._project_id

    @property
    def _client(self):
        if self._shared_client is not None:
            return self._shared_client
        if not hasattr(self.ns, "client"):
            self.ns.client = secretmanager.SecretManagerServiceClient(
                credentials=self.credentials
            )
        return self.ns.client

    def secret_path(self, name):
        return f"projects/{self.project_id}/secrets/{name}"

    def exists(self, name):
        """True if a secret called ``name`` exists, with or without versions."""
        try:
            self._client.get_secret(
                request={"name": self.secret_path(name)}, timeout=self.timeout
            )
            return True
        except exceptions.NotFound:
            return False
        except exceptions.GoogleAPIError as e:
            raise StoreUnavailable(name, e) from e

    def read_string(self, name):
        """Reads the payload of the most recent enabled version.

        Raises:
            google.api_core.exceptions.NotFound: No secret called ``name``.
            NoActiveSecretVersion: The secret exists but has no enabled version.
            StoreUnavailable: Any other store failure.
        """
        path = self.secret_path(name)
        try:
            request = secretmanager_v1.ListSecretVersionsRequest(
                parent=path, filter="state=ENABLED"
            )
            page_result = self._client.list_secret_versions(
                request=request, timeout=self.timeout
            )
            latest = None
            for response in page_result:
                if latest is None or latest.create_time < response.create_time:
                    latest = response

            if not latest:
                raise NoActiveSecretVersion(name)

            response = self._client.access_secret_version(
                request={"name": latest.name}, timeout=self.timeout
            )
        except exceptions.NotFound:
            raise
        except exceptions.GoogleAPIError as e:
            raise StoreUnavailable(name, e) from e

        return response.payload.data.decode("utf-8")

    def read_json(self, name):
        secret = self.read_string(name)
        return json.loads(secret) if secret else {}

    def try_read_json(self, name):
        """Like ``read_json`` but returns None when there is nothing usable to read.

        Missing secrets, secrets with no enabled version and payloads that are not a
        JSON object all give None. Store failures still raise.
        """
        try:
            secret = self.read_json(name)
        except exceptions.NotFound:
            return None
        except NoActiveSecretVersion:
            logging.getLogger(__name__).warning(
                f"Secret {name} exists without an enabled version, ignoring it"
            )
            return None
        except ValueError:
            logging.getLogger(__name__).warning(
                f"Secret {name} is not valid JSON, ignoring it"
            )
            return None
        if not isinstance(secret, dict):
            logging.getLogger(__name__).warning(
                f"Secret {name} is not a JSON object, ignoring it"
            )
            return None
        return secret

    def create_if_absent(self, name, payload, encryption_key_id=None, tags=None):
        """Creates ``name`` holding ``payload`` as JSON unless it already exists.

        Returns:
            bool: True if this call created the secret.
        """
        return self.create_plain_if_absent(
            name, json.dumps(payload), encryption_key_id, tags
        )

    def create_plain_if_absent(self, name, secret, encryption_key_id=None, tags=None):
        """Creates ``name`` holding the string ``secret`` verbatim unless it exists.

        Args:
            name (str): Secret id.
            secret (str): Payload, stored as utf-8.
            encryption_key_id (str, optional): Cloud KMS key name used as customer
                managed encryption key.
            tags (dict, optional): Applied as labels once the secret exists.

        Returns:
            bool: True if this call created the secret.
        """
        if self.exists(name):
            logging.getLogger(__name__).info(f"Secret {name} already exists, leaving it")
            return False

        replication = {"automatic": {}}
        if encryption_key_id:
            replication = {
                "automatic": {
                    "customer_managed_encryption": {"kms_key_name": encryption_key_id}
                }
            }

        try:
            self._client.create_secret(
                request={
                    "parent": f"projects/{self.project_id}",
                    "secret_id": name,
                    "secret": {"replication": replication},
                },
                timeout=self.timeout,
            )
        except exceptions.AlreadyExists:
            logging.getLogger(__name__).warning(
                f"Secret {name} was created by another caller, leaving it"
            )
            return False
        except exceptions.GoogleAPIError as e:
            raise StoreUnavailable(name, e) from e

        try:
            self._add_version(name, secret)
        except StoreUnavailable:
            self._discard_empty(name)
            raise
        self._apply_labels(name, tags)
        logging.getLogger(__name__).info(f"Created secret {name}")
        return True

    def _add_version(self, name, secret):
        data = secret.encode("utf-8")

        crc32c = google_crc32c.Checksum()
        crc32c.update(data)

        try:
            self._client.add_secret_version(
                request={
                    "parent": self.secret_path(name),
                    "payload": {"data": data, "data_crc32c": int(crc32c.hexdigest(), 16)},
                },
                timeout=self.timeout,
            )
        except exceptions.GoogleAPIError as e:
            raise StoreUnavailable(name, e) from e

    def _discard_empty(self, name):
        # Only ever called for a container this store created and left without a version
        try:
            self._client.delete_secret(
                request={"name": self.secret_path(name)}, timeout=self.timeout
            )
            logging.getLogger(__name__).warning(
                f"Deleted secret {name} after its payload could not be stored"
            )
        except exceptions.GoogleAPIError:
            logging.getLogger(__name__).exception(
                f"While deleting empty secret {name}, remove it before retrying"
            )

    def _apply_labels(self, name, tags):
        # The secret and its payload exist at this point, a label failure leaves
        # an unlabelled secret rather than failing the pass
        labels = tags_to_labels(tags)
        if not labels:
            return
        try:
            self._client.update_secret(
                request={
                    "secret": {"name": self.secret_path(name), "labels": labels},
                    "update_mask": {"paths": ["labels"]},
                },
                timeout=self.timeout,
            )
        except exceptions.GoogleAPIError:
            logging.getLogger(__name__).exception(f"While labelling secret {name}")
