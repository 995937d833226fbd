"""
Tests for assembling the intermediate representation of a whole project.
"""

import json
import unittest

import pytest

from backend_ir.assembler import build_intermediate_representation
from backend_ir.config_validation import validate_and_parse_config
from backend_ir.domain.models import FieldSuggestion
from backend_ir.exceptions import SchemaError, UnknownModelReference
from backend_ir.suggestions import PrecomputedSuggestionProvider
from backend_ir.validators import ViolationCode

from conftest import BLOG_CONFIG


class TestBuildIntermediateRepresentation(unittest.TestCase):
    """Test build_intermediate_representation on the blog project."""

    def setUp(self):
        self.config = json.loads(json.dumps(BLOG_CONFIG))

    def test_models_and_relationships(self):
        ir = build_intermediate_representation(self.config)

        self.assertEqual([m.name for m in ir.models], ["User", "Post", "Tag"])
        self.assertEqual([r.id for r in ir.relationships], ["user-posts", "post-tags"])
        self.assertEqual(
            ir.get_model("Post").field_names, ["title", "content", "status", "userId", "tags"]
        )
        self.assertEqual(ir.get_model("User").field_names, ["email", "displayName", "age"])
        self.assertEqual(ir.join_models, [])

    def test_pass_through_sections(self):
        ir = build_intermediate_representation(self.config)

        self.assertEqual(ir.project['project_name'], "blog-api")
        self.assertEqual(ir.database['database_type'], "MongoDB")
        self.assertEqual(ir.database['orm'], "mongoose")
        self.assertTrue(ir.features['swagger'])
        self.assertTrue(ir.features['cors'])
        self.assertFalse(ir.features['caching'])

    def test_orm_follows_database(self):
        self.config["database"] = {"databaseType": "PostgreSQL"}
        ir = build_intermediate_representation(self.config)
        self.assertEqual(ir.database['orm'], "typeorm")

    def test_auth(self):
        """Test auth is present with default roles when enabled."""
        ir = build_intermediate_representation(self.config)

        self.assertTrue(ir.auth['enabled'])
        self.assertEqual(ir.auth['roles'], ["Admin", "User"])
        self.assertEqual(ir.auth['jwt']['access_ttl'], "15m")
        self.assertTrue(ir.auth['rbac']['enabled'])
        self.assertIsNone(ir.oauth)

    def test_auth_absent_when_disabled(self):
        self.config["auth"] = {"enabled": False}
        ir = build_intermediate_representation(self.config)
        self.assertIsNone(ir.auth)

    def test_deployment_sections(self):
        """Test docker and CI are on unless disabled explicitly."""
        ir = build_intermediate_representation(self.config)
        self.assertTrue(ir.docker['multi_stage'])
        self.assertTrue(ir.cicd['github_actions'])

        self.config["docker"] = {"enabled": False}
        self.config["cicd"] = {"enabled": False}
        ir = build_intermediate_representation(self.config)
        self.assertIsNone(ir.docker)
        self.assertIsNone(ir.cicd)

    def test_seed_plan_only_when_enabled(self):
        ir = build_intermediate_representation(self.config)
        self.assertIsNone(ir.seed_plan)
        self.assertNotIn('random_seed', ir.metadata)

        self.config["seeding"] = {"enabled": True, "count": 3, "counts": {"Tag": 7}}
        ir = build_intermediate_representation(self.config)

        self.assertEqual([p.model_name for p in ir.seed_plan], ["User", "Tag", "Post"])
        self.assertEqual([p.count for p in ir.seed_plan], [3, 7, 3])
        self.assertEqual(ir.metadata['random_seed'], 42)

    def test_metadata(self):
        ir = build_intermediate_representation(self.config)
        self.assertEqual(ir.metadata['model_count'], 3)
        self.assertEqual(ir.metadata['relationship_count'], 2)
        self.assertEqual(ir.metadata['generator_version'], "1.0.0")
        self.assertIn('timestamp', ir.metadata)

    def test_warnings_are_collected(self):
        self.config["models"][2]["name"] = "tag"
        self.config["relationships"].append({
            "type": "many-to-one",
            "sourceModel": "User",
            "targetModel": "User",
            "fieldName": "invitedBy",
        })
        ir = build_intermediate_representation(self.config)

        codes = [w['code'] for w in ir.warnings]
        self.assertEqual(
            codes,
            [ViolationCode.INVALID_MODEL_NAME_FORMAT, ViolationCode.SELF_REFERENTIAL_RELATIONSHIP],
        )
        self.assertEqual(ir.get_model("Post").get_field("tags").referenced_model, "Tag")

    def test_join_model_is_not_a_declared_model(self):
        self.config["relationships"][1].update({
            "through": "PostTagging",
            "attributes": [{"name": "addedAt", "type": "datetime"}],
        })
        self.config["seeding"] = {"enabled": True}
        ir = build_intermediate_representation(self.config)

        self.assertEqual([m.name for m in ir.join_models], ["PostTagging"])
        self.assertIsNone(ir.get_model("PostTagging"))
        self.assertIsNone(ir.get_model("Post").get_field("tags"))
        self.assertNotIn("PostTagging", [p.model_name for p in ir.seed_plan])

    def test_to_dict_is_serializable(self):
        self.config["seeding"] = {"enabled": True}
        document = build_intermediate_representation(self.config).to_dict()

        restored = json.loads(json.dumps(document))
        self.assertEqual(restored['models'][0]['route_path'], "/users")
        self.assertEqual(restored['models'][1]['fields'][2]['validators'], ["is-in"])
        self.assertEqual(restored['relationships'][1]['kind'], "many-to-many")
        self.assertEqual(
            restored['seed_plan'][0]['field_strategies'][0]['expression'],
            "faker.unique.email()",
        )

    def test_suggestion_provider_is_used(self):
        provider = PrecomputedSuggestionProvider({
            ("Tag", "label"): FieldSuggestion(description="Tag label shown in the UI"),
        })
        ir = build_intermediate_representation(self.config, suggestion_provider=provider)

        self.assertEqual(
            ir.get_model("Tag").get_field("label").description, "Tag label shown in the UI"
        )
        self.assertEqual(ir.get_model("User").get_field("email").description, "Email address")

    def test_accepts_validated_config(self):
        config = validate_and_parse_config(self.config)
        ir = build_intermediate_representation(config)
        self.assertEqual(len(ir.models), 3)


def test_unknown_model_reference_is_fatal(blog_config):
    blog_config["relationships"][0]["targetModel"] = "Comment"

    with pytest.raises(UnknownModelReference) as excinfo:
        build_intermediate_representation(blog_config)

    assert excinfo.value.model_name == "Comment"


def test_schema_errors_surface(blog_config):
    del blog_config["database"]

    with pytest.raises(SchemaError) as excinfo:
        build_intermediate_representation(blog_config)

    assert [v.code for v in excinfo.value.errors] == [ViolationCode.MISSING_SECTION]


def test_empty_model_set(blog_config):
    blog_config["models"] = []
    blog_config["relationships"] = []

    ir = build_intermediate_representation(blog_config)

    assert ir.models == []
    assert ir.relationships == []
