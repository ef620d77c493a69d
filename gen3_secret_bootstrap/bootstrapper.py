# -*- coding: utf-8 -*-
"""Seeds the application secrets of one Gen3 environment.

Run on every deployment. Secrets are only ever created, never updated or deleted, so a
pass can be repeated any number of times and a failed pass resumes where it stopped
when retried.

A pass moves through

ResolvingDbCoordinates   db host/port from overrides or the master secret
BuildingCoreCredentials  one db credential per configured service
BuildingOptionalBundles  each enabled bundle in dependency order
Done                     returns the names this pass created

and any failure aborts the rest of the pass. Secrets created before the failure stay.
Delete events are acknowledged without touching the store.
"""

import json
import logging

from google.api_core import exceptions
from google.cloud import storage

from . import bundles
from . import names
from .exceptions import MissingDbCoordinates, SecretBootstrapError, StoreUnavailable
from .inputs import InvocationContext, is_delete, merge_properties

RESOLVING_DB_COORDINATES = "ResolvingDbCoordinates"
BUILDING_CORE_CREDENTIALS = "BuildingCoreCredentials"
BUILDING_OPTIONAL_BUNDLES = "BuildingOptionalBundles"
DONE = "Done"
FAILED = "Failed"


class SecretBootstrapper:
    """Runs bootstrap passes against one secret store.

    Attributes:
        store (SecretStore): Gateway onto the secret store, shared by every pass.
    """

    def __init__(self, store, _storage_client_callback=None):
        """Initializes the SecretBootstrapper.

        Args:
            store (SecretStore): The store to seed.
            _storage_client_callback (callable, optional): Returns a Cloud Storage client
                used to load remote configuration. Defaults to one built from the
                store's credentials.
        """
        self._store = store
        self._storage_client_callback = _storage_client_callback

    @property
    def store(self):
        return self._store

    def on_event(self, event):
        """Handles one deployment lifecycle event.

        Args:
            event (dict): ``{"RequestType": "Create"|"Update"|"Delete",
                "ResourceProperties": {...}}``.

        Returns:
            dict: ``PhysicalResourceId`` and, unless deleting, ``Data.created`` holding
            the JSON list of secret names created by this pass.
        """
        request_type = event.get("RequestType")
        props = event.get("ResourceProperties") or {}

        if is_delete(request_type):
            # secrets outlive the environment, an operator removes them by hand
            logging.getLogger(__name__).info(
                f"Delete requested for {props.get('project')}-{props.get('envName')}, "
                f"no secrets removed"
            )
            return {
                "PhysicalResourceId": names.physical_resource_id(
                    props.get("project"), props.get("envName")
                )
            }

        step = "invocation"
        try:
            if props.get("configBucket") and props.get("configObject"):
                step = "config"
                props = merge_properties(
                    self.load_config(props["configBucket"], props["configObject"]), props
                )
                step = "invocation"

            context = InvocationContext.from_properties(props, request_type)
        except SecretBootstrapError as e:
            e.step = step
            logging.getLogger(__name__).error(
                f"{props.get('project')}-{props.get('envName')} {FAILED} at {step}: {e}"
            )
            raise

        created = self.bootstrap(context)
        return {
            "PhysicalResourceId": context.physical_resource_id,
            "Data": {"created": json.dumps(created)},
        }

    def on_message(self, attributes, data):
        """Handles an event delivered as a Pub/Sub message.

        Args:
            attributes (dict): Message attributes; ``requestType`` overrides the event's
                ``RequestType``.
            data (bytes): The event as utf-8 JSON.
        """
        event = json.loads(data.decode("utf-8")) if data else {}
        if attributes and attributes.get("requestType"):
            event["RequestType"] = attributes["requestType"]
        return self.on_event(event)

    def load_config(self, bucket, blob_name):
        """Loads a JSON configuration file from Google Cloud Storage.

        Args:
            bucket (str): The name of the GCS bucket.
            blob_name (str): The name of the object (file) in the bucket.

        Returns:
            dict: The parsed JSON configuration.

        Raises:
            StoreUnavailable: The bucket or object could not be read.
            SecretBootstrapError: The object is missing or is not a JSON object.
        """
        location = f"gs://{bucket}/{blob_name}"
        if self._storage_client_callback is not None:
            client = self._storage_client_callback()
        else:
            client = storage.Client(
                project=self.store.project_id, credentials=self.store.credentials
            )
        try:
            blob = client.get_bucket(bucket).get_blob(blob_name)
            if blob is None:
                raise SecretBootstrapError(f"Config object {location} not found")
            data = blob.download_as_bytes()
        except exceptions.GoogleAPIError as e:
            raise StoreUnavailable(location, e) from e

        try:
            loaded = json.loads(data.decode("utf-8"))
        except ValueError as e:
            raise SecretBootstrapError(f"Config object {location} is not valid JSON") from e
        if not isinstance(loaded, dict):
            raise SecretBootstrapError(f"Config object {location} is not a JSON object")
        return loaded

    def bootstrap(self, context):
        """Runs one pass and returns the names of the secrets it created.

        Raises:
            SecretBootstrapError: The pass failed; ``step`` names the failing step.
        """
        logger = logging.getLogger(__name__)
        created = []
        step = "database-coordinates"
        state_name = RESOLVING_DB_COORDINATES

        try:
            logger.info(f"{context.physical_resource_id} {state_name}")
            db_host, db_port = self.resolve_db_coordinates(context)
            state = bundles.PassState(self.store, context, db_host, db_port)

            state_name = BUILDING_CORE_CREDENTIALS
            logger.info(f"{context.physical_resource_id} {state_name}")
            for service in context.services:
                builder = bundles.ServiceDbCredentialBundle(service)
                step = builder.kind
                self._create(builder, context, state, created)

            state_name = BUILDING_OPTIONAL_BUNDLES
            logger.info(f"{context.physical_resource_id} {state_name}")
            for builder in bundles.optional_bundles():
                step = builder.kind
                if not builder.enabled(context):
                    continue
                builder.check_preconditions(context)
                self._create(builder, context, state, created)
        except SecretBootstrapError as e:
            e.step = step
            logger.error(
                f"{context.physical_resource_id} {FAILED} in {state_name} at {step} "
                f"after creating {created}: {e}"
            )
            raise

        logger.info(f"{context.physical_resource_id} {DONE} created {created}")
        return created

    def resolve_db_coordinates(self, context):
        """Returns (host, port) as strings.

        Overrides win; the master secret is read only when one of them is missing.

        Raises:
            MissingDbCoordinates: Neither source gives both host and port.
        """
        host = context.db_host_override
        port = context.db_port_override
        if not host or not port:
            master = self.store.try_read_json(context.master_secret_name) or {}
            host = host or master.get("host")
            port = port or master.get("port")
        if not host or not port:
            raise MissingDbCoordinates(context.master_secret_name)
        return str(host), str(port)

    def _create(self, builder, context, state, created):
        name = builder.secret_name(context)
        payload = builder.build(context, state)
        if builder.plain:
            stored = self.store.create_plain_if_absent(
                name, payload, context.encryption_key_id, context.tags
            )
        else:
            stored = self.store.create_if_absent(
                name, payload, context.encryption_key_id, context.tags
            )
        if stored:
            builder.stored(context, state, payload)
            created.append(name)
        return stored
