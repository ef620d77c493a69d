# -*- coding: utf-8 -*-
import os
import unittest
from unittest import mock

from gen3_secret_bootstrap import InvocationContext, MissingRequiredInput, parse_features
from gen3_secret_bootstrap import config, names
from gen3_secret_bootstrap.inputs import DEFAULT_SERVICES, merge_properties, is_delete


class TestInvocationContext(unittest.TestCase):

    def test_defaults(self):
        with mock.patch.dict(os.environ, {"AWS_REGION": ""}):
            context = InvocationContext.from_properties({"project": "omix3", "envName": "test"})
        assert context.services == DEFAULT_SERVICES
        assert context.master_secret_name == "omix3-master-test-rds"
        assert context.password_length == 24
        assert context.create == {}
        assert context.tags == {}
        assert context.encryption_key_id is None
        assert context.indexd_service_users == ["sheepdog", "fence", "ssj", "gateway"]
        assert context.g3auto.audit.region == "ap-southeast-2"
        assert context.physical_resource_id == "gen3-secrets-omix3-test"

    def test_full_properties(self):
        context = InvocationContext.from_properties({
            "project": "omix3",
            "envName": "test",
            "services": ["index", "fence"],
            "masterSecretName": "shared-master",
            "passwordLength": "10",
            "kmsKeyId": "projects/p/locations/l/keyRings/r/cryptoKeys/k",
            "tags": {"team": "data", "count": 3},
            "dbHostOverride": "db.local",
            "dbPortOverride": 5432,
            "create": {"metadataG3auto": "true", "wtsG3auto": False, "auditGen3auto": "false"},
            "g3auto": {"hostname": "gen3.example.org", "region": "eu-west-1",
                       "ssjSqsUrl": "https://sqs/ssj", "ssjIndexdUser": "indexer"},
            "indexdServiceUsers": ["fence", "custom"],
            "indexdServiceStatic": {"custom": "tok", "empty": "", "bad": 3},
        }, "Update")
        assert context.services == ["index", "fence"]
        assert context.master_secret_name == "shared-master"
        assert context.password_length == 10
        assert context.tags == {"team": "data", "count": "3"}
        assert context.db_port_override == "5432"
        assert context.enabled("metadataG3auto")
        assert not context.enabled("wtsG3auto")
        assert not context.enabled("auditGen3auto")
        assert not context.enabled("fenceJwtPrivateKey")
        assert context.g3auto.metadata.hostname == "gen3.example.org"
        assert context.g3auto.ssj.region == "eu-west-1"
        assert context.g3auto.ssj.indexd_user == "indexer"
        assert context.indexd_service_users == ["fence", "custom"]
        assert context.indexd_service_static == {"custom": "tok"}
        assert context.request_type == "Update"

    def test_missing_project(self):
        with self.assertRaises(MissingRequiredInput) as ctx:
            InvocationContext.from_properties({"envName": "test"})
        assert ctx.exception.field == "project"

    def test_missing_env_name(self):
        with self.assertRaises(MissingRequiredInput) as ctx:
            InvocationContext.from_properties({"project": "omix3", "envName": " "})
        assert ctx.exception.field == "envName"

    def test_bad_password_length(self):
        for value in ("abc", 0, "-3"):
            with self.assertRaises(MissingRequiredInput):
                InvocationContext.from_properties({"project": "p", "envName": "e", "passwordLength": value})

    def test_services_as_csv(self):
        context = InvocationContext.from_properties({"project": "p", "envName": "e",
                                                     "services": "index, fence"})
        assert context.services == ["index", "fence"]

    def test_bundle_validation(self):
        context = InvocationContext.from_properties({"project": "p", "envName": "e",
                                                     "g3auto": {"hostname": "h"}})
        context.g3auto.metadata.validate("metadata-g3auto")
        with self.assertRaises(MissingRequiredInput) as ctx:
            context.g3auto.pelican.validate("pelicanservice-g3auto")
        assert ctx.exception.bundle == "pelicanservice-g3auto"
        assert ctx.exception.field == "g3auto.pelicanBucketName"
        with self.assertRaises(MissingRequiredInput):
            context.g3auto.audit.validate("audit-g3auto")


class TestFeatures(unittest.TestCase):

    def test_parse_features(self):
        assert parse_features(None) == {}
        assert parse_features("metadataG3auto, wtsG3auto,") == {"metadataG3auto": True, "wtsG3auto": True}
        assert parse_features({"a": "TRUE", "b": "no", "c": 1}) == {"a": True, "b": False, "c": True}

    def test_merge_properties(self):
        merged = merge_properties(
            {"project": "remote", "envName": "test", "create": "metadataG3auto,wtsG3auto",
             "g3auto": {"hostname": "remote.org", "region": "us-east-1"}},
            {"project": "local", "create": {"wtsG3auto": False},
             "g3auto": {"hostname": "local.org"}},
        )
        assert merged["project"] == "local"
        assert merged["envName"] == "test"
        assert merged["create"] == {"metadataG3auto": True, "wtsG3auto": False}
        assert merged["g3auto"] == {"hostname": "local.org", "region": "us-east-1"}

    def test_is_delete(self):
        assert is_delete("Delete")
        assert is_delete("delete")
        assert not is_delete("Create")
        assert not is_delete(None)


class TestNames(unittest.TestCase):

    def test_names(self):
        assert names.service_db_secret_name("omix3", "test", "fence") == "omix3-test-fence"
        assert names.metadata_secret_name("omix3", "test") == "omix3-test-metadata-g3auto"
        assert names.wts_secret_name("omix3", "test") == "omix3-test-wts-g3auto"
        assert names.pelican_secret_name("omix3", "test") == "omix3-test-pelicanservice-g3auto"
        assert names.manifest_secret_name("omix3", "test") == "omix3-test-manifestservice-g3auto"
        assert names.audit_secret_name("omix3", "test") == "omix3-test-audit-g3auto"
        assert names.ssj_secret_name("omix3", "test") == "omix3-test-ssjdispatcher-creds"
        assert names.indexd_service_secret_name("omix3", "test") == "omix3-test-indexd-service"
        assert names.fence_jwt_key_secret_name("omix3", "test") == "omix3-test-fence-jwt-key"


class TestConfig(unittest.TestCase):

    def test_optional(self):
        with mock.patch.dict(os.environ, {"GEN3_TEST_SETTING": "  value ", "GEN3_TEST_BLANK": " "}):
            assert config.optional("GEN3_TEST_SETTING") == "value"
            assert config.optional("GEN3_TEST_BLANK") is None

    def test_timeout(self):
        with mock.patch.dict(os.environ, {"GEN3_SECRETS_TIMEOUT": "12"}):
            assert config.timeout() == 12.0
        with mock.patch.dict(os.environ, {"GEN3_SECRETS_TIMEOUT": ""}):
            assert config.timeout() == config.DEFAULT_TIMEOUT


if __name__ == '__main__':
    unittest.main()
