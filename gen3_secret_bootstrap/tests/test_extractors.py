# -*- coding: utf-8 -*-
import base64
import unittest

from gen3_secret_bootstrap import extract_admin_password_from_metadata_bundle, \
    extract_password_from_dispatcher_bundle


def b64(text):
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class TestMetadataExtractor(unittest.TestCase):

    def test_admin_logins_line(self):
        bundle = {"metadata.env": ["DEBUG=false", "ADMIN_LOGINS=gateway:abc123"]}
        assert extract_admin_password_from_metadata_bundle(bundle) == "abc123"

    def test_admin_logins_several_users(self):
        bundle = {"metadata.env": ["ADMIN_LOGINS=alice:one, gateway:two,bob:three"]}
        assert extract_admin_password_from_metadata_bundle(bundle) == "two"

    def test_falls_back_to_base64_authz(self):
        bundle = {"metadata.env": ["ADMIN_LOGINS=alice:one"], "base64Authz.txt": b64("gateway:fromb64")}
        assert extract_admin_password_from_metadata_bundle(bundle) == "fromb64"

    def test_base64_other_user(self):
        bundle = {"base64Authz.txt": b64("alice:nope")}
        assert extract_admin_password_from_metadata_bundle(bundle) is None

    def test_malformed_shapes(self):
        for bundle in (None, [], "text", {}, {"metadata.env": "ADMIN_LOGINS=gateway:x"},
                       {"metadata.env": [1, None]}, {"base64Authz.txt": "***not base64***"},
                       {"base64Authz.txt": b64("gateway")}, {"metadata.env": ["ADMIN_LOGINS=gateway:"]}):
            assert extract_admin_password_from_metadata_bundle(bundle) is None, f"{bundle!r}"


class TestDispatcherExtractor(unittest.TestCase):

    def job(self, name, password):
        return {"name": name, "imageConfig": {"password": password}}

    def test_indexing_job(self):
        bundle = {"JOBS": [self.job("other", "first"), self.job("indexing", "wanted")]}
        assert extract_password_from_dispatcher_bundle(bundle) == "wanted"

    def test_first_job_when_no_indexing(self):
        bundle = {"JOBS": [self.job("other", "first"), self.job("more", "second")]}
        assert extract_password_from_dispatcher_bundle(bundle) == "first"

    def test_malformed_shapes(self):
        for bundle in (None, {}, {"JOBS": []}, {"JOBS": "x"}, {"JOBS": ["x"]},
                       {"JOBS": [{"name": "indexing"}]},
                       {"JOBS": [{"name": "indexing", "imageConfig": {"password": ""}}]},
                       {"JOBS": [{"name": "indexing", "imageConfig": {"password": 12}}]}):
            assert extract_password_from_dispatcher_bundle(bundle) is None, f"{bundle!r}"


if __name__ == '__main__':
    unittest.main()
