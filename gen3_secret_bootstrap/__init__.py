# -*- coding: utf-8 -*-
"""gen3_secret_bootstrap

Seeds the application secrets of a Gen3 environment in GCP Secret Manager on every
deployment. Secrets are created when missing and otherwise left exactly as they are, so
a secret-sync agent can mirror them into the cluster.

"""

from gen3_secret_bootstrap.exceptions import SecretBootstrapError, \
    NoActiveSecretVersion, \
    MissingDbCoordinates, \
    MissingRequiredInput, \
    StoreUnavailable, \
    EntropyFailure
from gen3_secret_bootstrap.store import SecretStore
from gen3_secret_bootstrap.inputs import InvocationContext, parse_features
from gen3_secret_bootstrap.bundles import PLACEHOLDER, \
    PassState, \
    BundleBuilder
from gen3_secret_bootstrap.bootstrapper import SecretBootstrapper
from gen3_secret_bootstrap.generators import generate_password, \
    generate_random_bytes_base64, \
    generate_signing_key_pair
from gen3_secret_bootstrap.extractors import extract_admin_password_from_metadata_bundle, \
    extract_password_from_dispatcher_bundle
from ._version import __version__

__all__ = ["__version__",
           "SecretBootstrapError",
           "NoActiveSecretVersion",
           "MissingDbCoordinates",
           "MissingRequiredInput",
           "StoreUnavailable",
           "EntropyFailure",
           "SecretStore",
           "InvocationContext",
           "parse_features",
           "PLACEHOLDER",
           "PassState",
           "BundleBuilder",
           "SecretBootstrapper",
           "generate_password",
           "generate_random_bytes_base64",
           "generate_signing_key_pair",
           "extract_admin_password_from_metadata_bundle",
           "extract_password_from_dispatcher_bundle"]
