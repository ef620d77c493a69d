# -*- coding: utf-8 -*-
"""In memory stand in for ``SecretManagerServiceClient``.

Implements the calls the store makes and raises the real ``google.api_core`` exceptions
so error mapping is exercised as it would be against the service.
"""

import json
from types import SimpleNamespace

import google_crc32c
from google.api_core import exceptions

PROJECT = "test-project"


class FakeSecretManagerClient:

    def __init__(self):
        self.secrets = {}
        self.calls = []
        self.failures = {}
        self.hidden = set()
        self._clock = 0

    def path(self, name):
        return f"projects/{PROJECT}/secrets/{name}"

    def _record(self, method, request):
        self.calls.append((method, request))
        if method in self.failures:
            raise self.failures[method]

    def _secret(self, path):
        if path not in self.secrets:
            raise exceptions.NotFound(f"Secret [{path}] not found or has no versions.")
        return self.secrets[path]

    # helpers used by tests to arrange and inspect state

    def put(self, name, payload, labels=None):
        path = self.path(name)
        self.secrets[path] = {"labels": dict(labels or {}), "replication": {"automatic": {}},
                              "versions": []}
        if payload is not None:
            data = payload if isinstance(payload, str) else json.dumps(payload)
            self._append_version(path, data.encode("utf-8"))

    def payload(self, name):
        versions = [v for v in self.secrets[self.path(name)]["versions"] if v.state == "ENABLED"]
        return versions[-1].data.decode("utf-8")

    def json_payload(self, name):
        return json.loads(self.payload(name))

    def names(self):
        return sorted(path.rsplit("/", 1)[1] for path in self.secrets)

    def mutating_calls(self):
        return [c for c in self.calls
                if c[0] in ("create_secret", "add_secret_version", "update_secret",
                            "delete_secret")]

    def _append_version(self, path, data):
        self._clock += 1
        secret = self.secrets[path]
        version = SimpleNamespace(
            name=f"{path}/versions/{len(secret['versions']) + 1}",
            create_time=self._clock,
            state="ENABLED",
            data=data,
        )
        secret["versions"].append(version)
        return version

    # SecretManagerServiceClient surface

    def get_secret(self, request, timeout=None):
        self._record("get_secret", request)
        if request["name"] in self.hidden:
            raise exceptions.NotFound(f"Secret [{request['name']}] not found.")
        secret = self._secret(request["name"])
        return SimpleNamespace(name=request["name"], labels=secret["labels"])

    def create_secret(self, request, timeout=None):
        self._record("create_secret", request)
        path = f"{request['parent']}/secrets/{request['secret_id']}"
        if path in self.secrets:
            raise exceptions.AlreadyExists(f"Secret [{path}] already exists.")
        self.secrets[path] = {"labels": {}, "replication": request["secret"]["replication"],
                              "versions": []}
        return SimpleNamespace(name=path)

    def add_secret_version(self, request, timeout=None):
        self._record("add_secret_version", request)
        secret_path = request["parent"]
        self._secret(secret_path)
        data = request["payload"]["data"]
        crc32c = google_crc32c.Checksum()
        crc32c.update(data)
        if int(crc32c.hexdigest(), 16) != request["payload"]["data_crc32c"]:
            raise exceptions.InvalidArgument("Checksum mismatch")
        return self._append_version(secret_path, data)

    def list_secret_versions(self, request, timeout=None):
        self._record("list_secret_versions", request)
        secret = self._secret(request.parent)
        return [v for v in secret["versions"] if v.state == "ENABLED"]

    def access_secret_version(self, request, timeout=None):
        self._record("access_secret_version", request)
        path = request["name"].split("/versions/")[0]
        for version in self._secret(path)["versions"]:
            if version.name == request["name"]:
                return SimpleNamespace(name=version.name, payload=SimpleNamespace(data=version.data))
        raise exceptions.NotFound(f"Secret Version [{request['name']}] not found.")

    def update_secret(self, request, timeout=None):
        self._record("update_secret", request)
        secret = self._secret(request["secret"]["name"])
        if "labels" in request["update_mask"]["paths"]:
            secret["labels"] = dict(request["secret"]["labels"])
        return SimpleNamespace(name=request["secret"]["name"], labels=secret["labels"])

    def delete_secret(self, request, timeout=None):
        self._record("delete_secret", request)
        self._secret(request["name"])
        del self.secrets[request["name"]]
