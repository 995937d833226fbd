# File: tests/conftest.py
# Contains pytest fixtures shared by the lowering tests.

import copy
from pathlib import Path
from typing import Dict, Any

import pytest
import yaml


BLOG_CONFIG: Dict[str, Any] = {
    "project": {
        "projectName": "blog-api",
        "description": "Blog backend",
        "author": "Test Author",
    },
    "database": {
        "databaseType": "MongoDB",
        "provider": "Atlas",
        "connectionString": "mongodb://localhost:27017/blog",
    },
    "models": [
        {
            "name": "User",
            "fields": [
                {"name": "email", "type": "string", "required": True, "unique": True},
                {"name": "displayName", "type": "string"},
                {"name": "age", "type": "number"},
            ],
        },
        {
            "name": "Post",
            "fields": [
                {"name": "title", "type": "string", "required": True},
                {"name": "content", "type": "string"},
                {"name": "status", "type": "enum", "values": ["draft", "published"]},
            ],
        },
        {
            "name": "Tag",
            "fields": [
                {"name": "label", "type": "string", "required": True},
            ],
        },
    ],
    "relationships": [
        {
            "id": "user-posts",
            "type": "one-to-many",
            "sourceModel": "User",
            "targetModel": "Post",
            "fieldName": "posts",
        },
        {
            "id": "post-tags",
            "type": "many-to-many",
            "sourceModel": "Post",
            "targetModel": "Tag",
            "fieldName": "tags",
        },
    ],
    "auth": {"enabled": True},
    "features": {"swagger": True},
}


@pytest.fixture
def blog_config() -> Dict[str, Any]:
    """A valid User/Post/Tag configuration as a raw dict (fresh copy per test)."""
    return copy.deepcopy(BLOG_CONFIG)


@pytest.fixture
def blog_config_file(tmp_path: Path, blog_config: Dict[str, Any]) -> Path:
    """The blog configuration written to a YAML file."""
    config_path = tmp_path / "backend.yaml"
    config_path.write_text(yaml.safe_dump(blog_config, sort_keys=False), encoding="utf-8")
    return config_path
