"""Tests for the declarative entity models.

Covers the metadata derived from a Model declaration (endpoint, selectable
field names, relation inclusion expressions, opt_fields) and the handling of
undeclared response fields.
"""

from typing import Optional

import pydantic
import pytest

from asana_client import models


class User(models.Model, endpoint="users"):
    email: str
    name: str


class Project(models.Model, endpoint="projects"):
    name: str


class Assignee(models.Model, endpoint="assignee"):
    pass


class Task(models.Model, endpoint="tasks", include=(Project, Assignee)):
    name: str
    projects: list[Project]
    assignee: Optional[Assignee] = None


class Ordered(models.Model, endpoint="ordered"):
    a: int
    b: str
    c: bool


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


def test_endpoint_returns_declared_path():
    """endpoint() is the literal passed at declaration."""
    assert User.endpoint() == "users"


def test_field_names_discriminator_first_in_declaration_order():
    """resource_type leads, declared fields follow in order, gid is absent."""
    assert Ordered.field_names() == ["resource_type", "a", "b", "c"]


def test_field_names_of_model_without_own_fields():
    """A model with no declared fields only selects the discriminator."""
    assert Assignee.field_names() == ["resource_type"]


def test_inclusion_strings_expand_each_relation_one_level():
    """Each included model contributes endpoint.(pipe-joined fields)."""
    assert Task.inclusion_strings() == [
        "projects.(resource_type|name)",
        "assignee.(resource_type)",
    ]


def test_inclusion_strings_empty_without_relations():
    """Models with no include keyword have no inclusion expressions."""
    assert User.inclusion_strings() == []


def test_opt_fields_keeps_trailing_separator_without_relations():
    """The comma before the (empty) inclusion list is always emitted."""
    assert User.opt_fields() == "this.(resource_type|email|name),"


def test_opt_fields_with_relations():
    """Own fields and inclusions are combined into a single selection."""
    assert Task.opt_fields() == (
        "this.(resource_type|name|projects|assignee),"
        "projects.(resource_type|name),assignee.(resource_type)"
    )


def test_subclass_inherits_endpoint_and_includes():
    """A subclass of a declared model keeps its endpoint and relations."""

    class DetailedTask(Task):
        notes: str

    assert DetailedTask.endpoint() == "tasks"
    assert DetailedTask.field_names()[-1] == "notes"
    assert DetailedTask.inclusion_strings() == Task.inclusion_strings()


# ---------------------------------------------------------------------------
# Declaration errors
# ---------------------------------------------------------------------------


def test_missing_endpoint_raises():
    """Declaring a model without an endpoint fails at class creation."""
    with pytest.raises(TypeError, match="endpoint"):

        class Nowhere(models.Model):
            name: str


def test_empty_endpoint_raises():
    """An empty endpoint is rejected."""
    with pytest.raises(TypeError, match="endpoint"):

        class Empty(models.Model, endpoint=""):
            name: str


def test_include_of_non_model_raises():
    """Only Model subclasses can be included as relations."""
    with pytest.raises(TypeError, match="include"):

        class Broken(models.Model, endpoint="broken", include=(dict,)):
            name: str


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def test_undeclared_fields_kept_in_extras():
    """Fields the model does not declare are retained, not dropped."""
    user = User.model_validate(
        {
            "gid": "42",
            "resource_type": "user",
            "email": "ada@example.com",
            "name": "Ada",
            "photo": {"image_21x21": "https://example.com/a.png"},
        },
    )
    assert user.extras == {"photo": {"image_21x21": "https://example.com/a.png"}}


def test_undeclared_fields_survive_reencoding():
    """model_dump reproduces undeclared fields alongside declared ones."""
    raw = {
        "gid": "1",
        "resource_type": "project",
        "name": "Roadmap",
        "color": "light-green",
    }
    assert Project.model_validate(raw).model_dump() == raw


def test_extras_empty_when_everything_declared():
    """extras is an empty mapping when the response matches the model."""
    project = Project.model_validate({"gid": "1", "resource_type": "project", "name": "A"})
    assert project.extras == {}


def test_nested_relations_are_validated():
    """Included relations decode into their own model types."""
    task = Task.model_validate(
        {
            "gid": "7",
            "resource_type": "task",
            "name": "Write docs",
            "projects": [{"gid": "1", "resource_type": "project", "name": "Roadmap"}],
            "assignee": None,
        },
    )
    assert isinstance(task.projects[0], Project)
    assert task.projects[0].name == "Roadmap"
    assert task.assignee is None


def test_missing_implicit_fields_fail_validation():
    """gid and resource_type are required on every entity."""
    with pytest.raises(pydantic.ValidationError):
        User.model_validate({"email": "ada@example.com", "name": "Ada"})


def test_list_envelope_requires_data_key():
    """An envelope without data is a validation error, not an empty list."""
    with pytest.raises(pydantic.ValidationError):
        models.ListEnvelope[User].model_validate({"items": []})


def test_extras_writes_are_kept_without_undeclared_fields():
    """Adding to extras on an entity with no undeclared fields is dumped too."""
    project = Project.model_validate({"gid": "2", "resource_type": "project", "name": "B"})

    project.extras["notes"] = "x"

    assert project.model_dump()["notes"] == "x"
