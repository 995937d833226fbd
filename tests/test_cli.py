"""
Tests for the backend-ir command line interface.
"""

import json
import logging

import pytest
import yaml

from backend_ir.cli import build_parser, main
from backend_ir.colored_logging import ColoredFormatter


@pytest.fixture(autouse=True)
def reset_root_logger():
    """Remove handlers installed by main() between tests."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)


def test_parser_requires_config():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_writes_json_file(blog_config_file, tmp_path):
    output = tmp_path / "out" / "ir.json"

    status = main(["-c", str(blog_config_file), "-o", str(output), "--no-color"])

    assert status == 0
    document = json.loads(output.read_text(encoding="utf-8"))
    assert [m['name'] for m in document['models']] == ["User", "Post", "Tag"]
    assert document['database']['orm'] == "mongoose"
    assert document['seed_plan'] is None


def test_writes_yaml_to_stdout(blog_config_file, capsys):
    status = main(["-c", str(blog_config_file), "--format", "yaml", "--no-color"])

    assert status == 0
    document = yaml.safe_load(capsys.readouterr().out)
    assert document['project']['project_name'] == "blog-api"
    assert document['relationships'][0]['id'] == "user-posts"


def test_seed_flags(blog_config_file, tmp_path):
    output = tmp_path / "ir.json"

    status = main([
        "-c", str(blog_config_file), "-o", str(output),
        "--seed", "--seed-count", "2", "--preview-rows", "--no-color",
    ])

    assert status == 0
    document = json.loads(output.read_text(encoding="utf-8"))
    assert [p['count'] for p in document['seed_plan']] == [2, 2, 2]
    assert len(document['seed_rows']['Post']) == 2

    user_ids = {row['id'] for row in document['seed_rows']['User']}
    assert all(row['userId'] in user_ids for row in document['seed_rows']['Post'])


def test_unknown_model_exits_with_error(blog_config, tmp_path, capsys):
    blog_config["relationships"][0]["targetModel"] = "Comment"
    config_path = tmp_path / "bad.yaml"
    config_path.write_text(yaml.safe_dump(blog_config), encoding="utf-8")
    output = tmp_path / "ir.json"

    status = main(["-c", str(config_path), "-o", str(output), "--no-color"])

    assert status == 1
    assert not output.exists()
    err = capsys.readouterr().err
    assert "UNKNOWN_MODEL_REFERENCE" in err
    assert "Comment" in err


def test_logs_role_restricted_models(blog_config_file, tmp_path, capsys):
    status = main(["-c", str(blog_config_file), "-o", str(tmp_path / "ir.json"), "--no-color"])

    assert status == 0
    err = capsys.readouterr().err
    assert "Role-restricted model(s): User" in err


def test_missing_config_file(tmp_path):
    assert main(["-c", str(tmp_path / "missing.yaml"), "--no-color"]) == 1


def test_colored_formatter_plain_output():
    formatter = ColoredFormatter(fmt="%(levelname)s %(message)s", use_colors=False)
    record = logging.LogRecord("backend_ir", logging.INFO, __file__, 1, "Done", None, None)

    assert formatter.format(record) == "INFO Done"
