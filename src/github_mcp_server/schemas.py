"""Input schemas for every exposed tool, plus the argument validator.

Schemas are plain JSON Schema dicts so they can be published as MCP ``inputSchema``
unchanged. The validator understands the subset used here:
- ``type``: object/string/boolean/integer/number/array
- ``properties`` and ``required`` on objects
- ``items`` on arrays

Unknown properties are ignored and left out of the normalized value.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .errors import FieldError

ROOT_PATH = "<root>"


def _string(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description}


def _boolean(description: str) -> dict[str, Any]:
    return {"type": "boolean", "description": description}


def _string_array(description: str) -> dict[str, Any]:
    return {"type": "array", "items": {"type": "string"}, "description": description}


def _object(properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required}


_OWNER = _string("Repository owner (username or organization)")
_REPO = _string("Repository name")

CREATE_REPOSITORY_SCHEMA = _object(
    {
        "name": _string("Repository name"),
        "description": _string("Repository description"),
        "private": _boolean("Whether the repository should be private"),
        "auto_init": _boolean("Initialize with README.md"),
    },
    ["name"],
)

CREATE_ISSUE_SCHEMA = _object(
    {
        "owner": _OWNER,
        "repo": _REPO,
        "title": _string("Issue title"),
        "body": _string("Issue body"),
        "assignees": _string_array("Usernames to assign to this issue"),
        "labels": _string_array("Labels to associate with this issue"),
        "milestone": {"type": "integer", "description": "Milestone number to associate with this issue"},
    },
    ["owner", "repo", "title"],
)

CREATE_OR_UPDATE_FILE_SCHEMA = _object(
    {
        "owner": _OWNER,
        "repo": _REPO,
        "path": _string("Path where to create/update the file"),
        "content": _string("Content of the file"),
        "message": _string("Commit message"),
        "branch": _string("Branch to create/update the file in"),
        "sha": _string("SHA of the file being replaced (required when updating an existing file)"),
    },
    ["owner", "repo", "path", "content", "message", "branch"],
)

GET_FILE_CONTENTS_SCHEMA = _object(
    {
        "owner": _OWNER,
        "repo": _REPO,
        "path": _string("Path to the file or directory"),
        "branch": _string("Branch to get contents from"),
    },
    ["owner", "repo", "path"],
)

CREATE_PULL_REQUEST_SCHEMA = _object(
    {
        "owner": _OWNER,
        "repo": _REPO,
        "title": _string("Pull request title"),
        "body": _string("Pull request body/description"),
        "head": _string("The name of the branch where your changes are implemented"),
        "base": _string("The name of the branch you want the changes pulled into"),
        "draft": _boolean("Whether to create the pull request as a draft"),
        "maintainer_can_modify": _boolean("Whether maintainers can modify the pull request"),
    },
    ["owner", "repo", "title", "head", "base"],
)

FORK_REPOSITORY_SCHEMA = _object(
    {
        "owner": _OWNER,
        "repo": _REPO,
        "organization": _string("Optional: organization to fork to (defaults to your personal account)"),
    },
    ["owner", "repo"],
)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of validating a payload: a normalized value or every violation found."""

    value: dict[str, Any] | None
    errors: tuple[FieldError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


def _join(path: str, key: str | int) -> str:
    if not path:
        return str(key)
    return f"{path}.{key}"


def _type_matches(expected: str, value: Any) -> bool:
    if expected == "string":
        return isinstance(value, str)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "array":
        return isinstance(value, list)
    if expected == "object":
        return isinstance(value, Mapping)
    return True


def _check(schema: Mapping[str, Any], value: Any, path: str, errors: list[FieldError]) -> Any:
    expected = schema.get("type")
    if expected is not None and not _type_matches(expected, value):
        errors.append(FieldError(path=path or ROOT_PATH, message=f"wrong type: expected {expected}"))
        return None

    if expected == "object":
        return _check_object(schema, value, path, errors)

    if expected == "array":
        item_schema = schema.get("items")
        if item_schema is None:
            return list(value)
        return [_check(item_schema, item, _join(path, i), errors) for i, item in enumerate(value)]

    return value


def _check_object(schema: Mapping[str, Any], value: Mapping[str, Any], path: str, errors: list[FieldError]) -> dict:
    props: Mapping[str, Any] = schema.get("properties", {})
    required: list[str] = schema.get("required", [])

    for key in required:
        if key not in value:
            errors.append(FieldError(path=_join(path, key), message="missing required field"))

    normalized: dict[str, Any] = {}
    for key, spec in props.items():
        if key not in value:
            continue
        normalized[key] = _check(spec, value[key], _join(path, key), errors)
    return normalized


def validate_arguments(schema: Mapping[str, Any], payload: Any) -> ValidationResult:
    """Validate a payload against an object schema.

    Never raises for bad input. All violations are collected so the caller can report
    them together.
    """
    errors: list[FieldError] = []
    if not isinstance(payload, Mapping):
        errors.append(FieldError(path=ROOT_PATH, message="wrong type: expected object"))
        return ValidationResult(value=None, errors=tuple(errors))

    normalized = _check_object(schema, payload, "", errors)
    if errors:
        return ValidationResult(value=None, errors=tuple(errors))
    return ValidationResult(value=normalized)
