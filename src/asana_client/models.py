"""Declarative entity models for the Asana REST API.

Asana returns sparse objects whose shape depends on the ``opt_fields`` query
parameter. A :class:`Model` subclass declares, once, which fields of an
entity the caller wants and which related entities to expand inline; the
same declaration is then used to build the query string and to validate the
response.

Example::

    class Project(Model, endpoint="projects"):
        name: str

    class Task(Model, endpoint="tasks", include=(Project,)):
        name: str
        projects: list[Project]
"""

from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

# Implicit on every entity; never listed as a selectable field.
IMPLICIT_FIELDS = ("gid", "resource_type")


class Model(BaseModel):
    """Base class for caller-declared Asana entities.

    Subclasses pass ``endpoint`` (required, inherited by further subclasses)
    and optionally ``include`` (other models to expand) as class keywords.
    Fields returned by the API but not declared are kept in :attr:`extras`
    and written back out by ``model_dump``.
    """

    model_config = ConfigDict(extra="allow")

    __endpoint__: ClassVar[str | None] = None
    __includes__: ClassVar[tuple[type, ...]] = ()

    gid: str
    resource_type: str

    def __init_subclass__(
        cls,
        endpoint: str | None = None,
        include: tuple[type["Model"], ...] = (),
        **kwargs: Any,
    ):
        super().__init_subclass__(**kwargs)

        if endpoint is not None:
            cls.__endpoint__ = endpoint
        if not cls.__endpoint__:
            msg = f"{cls.__name__} must declare a non-empty endpoint"
            raise TypeError(msg)

        includes = tuple(include)
        for relation in includes:
            if not (isinstance(relation, type) and issubclass(relation, Model)):
                msg = f"{cls.__name__} can only include Model subclasses, got {relation!r}"
                raise TypeError(msg)
        if includes:
            cls.__includes__ = includes

    @classmethod
    def endpoint(cls) -> str:
        """Return the API path segment for this entity (e.g. "users")."""
        return cls.__endpoint__

    @classmethod
    def field_names(cls) -> list[str]:
        """Return the selectable field names, discriminator first.

        ``gid`` is always returned by the API and is not listed.
        """
        own = [name for name in cls.model_fields if name not in IMPLICIT_FIELDS]
        return ["resource_type", *own]

    @classmethod
    def inclusion_strings(cls) -> list[str]:
        """Return one ``endpoint.(a|b)`` expression per included relation.

        Only one level is expanded; relations of relations need their own
        declaration.
        """
        return [
            f"{relation.endpoint()}.({'|'.join(relation.field_names())})"
            for relation in cls.__includes__
        ]

    @classmethod
    def opt_fields(cls) -> str:
        """Return the ``opt_fields`` query value for this entity.

        The separator before the inclusion list is emitted even when there
        are no inclusions.
        """
        return f"this.({'|'.join(cls.field_names())}),{','.join(cls.inclusion_strings())}"

    @property
    def extras(self) -> dict[str, Any]:
        """Fields present in the response but not declared on the model."""
        return self.model_extra


M = TypeVar("M", bound=Model)


class Envelope(BaseModel, Generic[M]):
    """Single-object response wrapper: ``{"data": {...}}``."""

    data: M


class ListEnvelope(BaseModel, Generic[M]):
    """Collection response wrapper: ``{"data": [...]}``."""

    data: list[M]
