"""Tests for request validation."""

import pytest

from fuzzhead.errors import ValidationError
from fuzzhead.validation import sanitize, validate_request

CODE = "from fuzzhead import FuzzTarget\n\nclass Foo(FuzzTarget):\n    pass\n"


class TestValidateRequest:
    def test_code_mode_is_default(self):
        request = validate_request({"code": CODE})
        assert request.mode == "code"
        assert request.code == CODE

    def test_code_is_not_sanitized(self):
        code = "class Foo:\n    connection = 'onload=1'\n"
        assert validate_request({"code": code}).code == code

    def test_repo_mode(self):
        request = validate_request(
            {
                "mode": "repo",
                "repoUrl": "https://github.com/owner/repo",
                "branch": "feature/x",
                "filePath": "src/app.py",
            }
        )
        assert request.repo_url == "https://github.com/owner/repo"
        assert request.branch == "feature/x"
        assert request.file_path == "src/app.py"

    def test_optional_repo_fields(self):
        request = validate_request(
            {"mode": "repo", "repoUrl": "https://github.com/owner/repo"}
        )
        assert request.branch is None
        assert request.file_path is None

    @pytest.mark.parametrize(
        "body, field",
        [
            ({"mode": "code"}, "code"),
            ({"mode": "code", "code": ""}, "code"),
            ({"mode": "code", "code": 42}, "code"),
            ({"mode": "code", "code": "x = 1"}, "code"),
            ({"mode": "code", "code": "x = 1\ny = 2\nz = 3\n"}, "code"),
            ({"mode": "code", "code": "class A: pass\n" * 10_000}, "code"),
            ({"mode": "other"}, "mode"),
            ({"mode": "repo"}, "repoUrl"),
            ({"mode": "repo", "repoUrl": "https://gitlab.com/a/b"}, "repoUrl"),
            ({"mode": "repo", "repoUrl": "https://github.com/a/.."}, "repoUrl"),
            (
                {"mode": "repo", "repoUrl": "https://github.com/a/b", "branch": "a b"},
                "branch",
            ),
            (
                {"mode": "repo", "repoUrl": "https://github.com/a/b", "filePath": "../x.py"},
                "filePath",
            ),
            (
                {"mode": "repo", "repoUrl": "https://github.com/a/b", "filePath": "/etc/x"},
                "filePath",
            ),
        ],
    )
    def test_rejects_invalid_bodies(self, body, field):
        with pytest.raises(ValidationError) as exc_info:
            validate_request(body)
        assert exc_info.value.field == field

    def test_rejects_non_object(self):
        with pytest.raises(ValidationError):
            validate_request(["not", "an", "object"])


class TestSanitize:
    def test_strips_script_fragments(self):
        assert sanitize("<script>alert(1)</script>main") == "main"
        assert sanitize("javascript:main") == "main"
        assert sanitize(" onclick=main ") == "main"

    def test_leaves_non_strings(self):
        assert sanitize(None) is None
