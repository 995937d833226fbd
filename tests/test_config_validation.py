"""
Tests for configuration schema validation and loading.
"""

import unittest
from argparse import Namespace

import pytest

from backend_ir.config_validation import (
    ProjectConfigSchema,
    load_config,
    validate_and_parse_config,
)
from backend_ir.exceptions import SchemaError
from backend_ir.validators import ViolationCode


MINIMAL = {
    "project": {"projectName": "shop-api"},
    "database": {"databaseType": "PostgreSQL"},
}


def with_sections(**sections):
    config = {key: dict(value) for key, value in MINIMAL.items()}
    config.update(sections)
    return config


class TestValidateAndParseConfig(unittest.TestCase):
    """Test validate_and_parse_config."""

    def test_minimal_config_defaults(self):
        """Test the defaults filled in for a minimal configuration."""
        config = validate_and_parse_config(with_sections())

        self.assertIsInstance(config, ProjectConfigSchema)
        self.assertEqual(config.project.project_name, "shop-api")
        self.assertEqual(config.project.license, "MIT")
        self.assertEqual(config.database.orm, "typeorm")
        self.assertEqual(config.models, [])
        self.assertEqual(config.relationships, [])
        self.assertFalse(config.auth.enabled)
        self.assertEqual(config.auth.roles, ["Admin", "User"])
        self.assertEqual(config.auth.jwt.access_ttl, "15m")
        self.assertFalse(config.seeding.enabled)
        self.assertEqual(config.seeding.count, 10)
        self.assertIsNone(config.oauth)

    def test_missing_sections(self):
        """Test each missing required section is reported once."""
        with self.assertRaises(SchemaError) as context:
            validate_and_parse_config({"models": []})

        errors = context.exception.errors
        self.assertEqual([v.code for v in errors], [ViolationCode.MISSING_SECTION] * 2)
        self.assertEqual([v.path for v in errors], ["project", "database"])

    def test_null_section_counts_as_missing(self):
        with self.assertRaises(SchemaError) as context:
            validate_and_parse_config({"project": {"projectName": "x"}, "database": None})
        self.assertEqual(
            [v.code for v in context.exception.errors], [ViolationCode.MISSING_SECTION]
        )

    def test_not_a_mapping(self):
        with self.assertRaises(SchemaError):
            validate_and_parse_config(["project"])

    def test_invalid_values_are_collected(self):
        """Test every malformed value is reported in one error."""
        config = {
            "project": {"projectName": "Shop API"},
            "database": {"databaseType": "Oracle"},
            "seeding": {"count": 0},
        }
        with self.assertRaises(SchemaError) as context:
            validate_and_parse_config(config)

        errors = context.exception.errors
        self.assertEqual(len(errors), 3)
        self.assertTrue(all(v.code == ViolationCode.INVALID_CONFIG for v in errors))
        self.assertTrue(any(v.path.startswith("seeding") for v in errors))

    def test_invalid_jwt_ttl(self):
        config = with_sections(auth={"enabled": True, "jwt": {"accessTTL": "15 minutes"}})
        with self.assertRaises(SchemaError):
            validate_and_parse_config(config)

    def test_unknown_relationship_kind(self):
        config = with_sections(relationships=[
            {"type": "one-to-few", "sourceModel": "A", "targetModel": "B", "fieldName": "bs"},
        ])
        with self.assertRaises(SchemaError):
            validate_and_parse_config(config)

    def test_oauth_requires_auth(self):
        config = with_sections(oauth={"enabled": True, "providers": []})
        with self.assertRaises(SchemaError) as context:
            validate_and_parse_config(config)
        self.assertEqual(
            [v.code for v in context.exception.errors], [ViolationCode.OAUTH_REQUIRES_AUTH]
        )

    def test_oauth_with_auth(self):
        config = with_sections(
            auth={"enabled": True},
            oauth={
                "enabled": True,
                "providers": [{
                    "name": "github",
                    "clientId": "id",
                    "clientSecret": "secret",
                    "callbackURL": "http://localhost/callback",
                }],
            },
        )
        parsed = validate_and_parse_config(config)
        self.assertEqual(parsed.oauth.providers[0].callback_url, "http://localhost/callback")

    def test_unknown_keys_are_ignored(self):
        parsed = validate_and_parse_config(with_sections(frontend={"framework": "react"}))
        self.assertEqual(parsed.project.project_name, "shop-api")


class TestKeyAliases(unittest.TestCase):
    """Test camelCase and snake_case keys are both accepted."""

    def test_snake_case_keys(self):
        config = {
            "project": {"project_name": "shop-api", "node_version": "22"},
            "database": {"database_type": "MongoDB", "connection_string": "mongodb://db"},
            "models": [{"name": "Product", "fields": [
                {"name": "sku", "type": "string", "max_length": 12, "default_value": "N/A"},
            ]}],
            "relationships": [{"type": "many-to-one", "source_model": "Product",
                               "target_model": "Product", "field_name": "parent"}],
            "seeding": {"enabled": True, "random_seed": 3},
        }
        parsed = validate_and_parse_config(config)

        self.assertEqual(parsed.project.node_version, "22")
        self.assertEqual(parsed.database.orm, "mongoose")
        self.assertEqual(parsed.database.connection_string, "mongodb://db")
        self.assertEqual(parsed.models[0].fields[0].max_length, 12)
        self.assertEqual(parsed.models[0].fields[0].default_value, "N/A")
        self.assertEqual(parsed.relationships[0].field_name, "parent")
        self.assertEqual(parsed.seeding.random_seed, 3)

    def test_camel_case_keys(self):
        config = with_sections(
            models=[{"name": "Product", "fields": [
                {"name": "sku", "type": "string", "maxLength": 12, "defaultValue": "N/A"},
                {"name": "size", "type": "enum", "enumValues": ["S", "M"]},
            ]}],
            cicd={"gitlabCI": True, "includeE2E": False},
        )
        parsed = validate_and_parse_config(config)

        fields = parsed.models[0].fields
        self.assertEqual(fields[0].max_length, 12)
        self.assertEqual(fields[1].values, ["S", "M"])
        self.assertTrue(parsed.cicd.gitlab_ci)
        self.assertFalse(parsed.cicd.include_e2e)

    def test_legacy_key_names(self):
        """Test the older 'name', 'type', 'default' and 'enum' spellings."""
        config = {
            "project": {"name": "legacy-app"},
            "database": {"type": "MySQL"},
            "models": [{"name": "Item", "fields": [
                {"name": "state", "type": "enum", "enum": ["on", "off"], "default": "on"},
            ]}],
        }
        parsed = validate_and_parse_config(config)

        self.assertEqual(parsed.project.project_name, "legacy-app")
        self.assertEqual(parsed.database.orm, "typeorm")
        self.assertEqual(parsed.models[0].fields[0].values, ["on", "off"])
        self.assertEqual(parsed.models[0].fields[0].default_value, "on")


def test_load_config_from_yaml(blog_config_file):
    config = load_config(str(blog_config_file))

    assert config.project.project_name == "blog-api"
    assert [m.name for m in config.models] == ["User", "Post", "Tag"]
    assert config.seeding.enabled is False


def test_load_config_applies_cli_overrides(blog_config_file):
    config = load_config(str(blog_config_file), Namespace(seed=True, seed_count=3))

    assert config.seeding.enabled is True
    assert config.seeding.count == 3


def test_load_config_missing_file(tmp_path):
    with pytest.raises(SchemaError) as excinfo:
        load_config(str(tmp_path / "absent.yaml"))

    assert excinfo.value.error_code == ViolationCode.INVALID_CONFIG
    assert "absent.yaml" in str(excinfo.value)


def test_load_config_malformed_yaml(tmp_path):
    config_path = tmp_path / "broken.yaml"
    config_path.write_text("project: [unclosed\n", encoding="utf-8")

    with pytest.raises(SchemaError):
        load_config(str(config_path))


def test_load_config_empty_file(tmp_path):
    config_path = tmp_path / "empty.yaml"
    config_path.write_text("", encoding="utf-8")

    with pytest.raises(SchemaError) as excinfo:
        load_config(str(config_path))

    codes = [v.code for v in excinfo.value.errors]
    assert codes == [ViolationCode.MISSING_SECTION, ViolationCode.MISSING_SECTION]
