"""Typed property access and text rendering for graph elements."""

from typing import Any, TypeVar

from .exceptions import PropertyNotFound, TypeMismatch
from .models import GraphElement, Vertex

T = TypeVar("T")


def _matches(value: Any, expected_type: type) -> bool:
    # bool is an int subclass but never a valid int or float property
    if isinstance(value, bool) and expected_type is not bool:
        return False
    if expected_type is float and isinstance(value, int):
        return True
    return isinstance(value, expected_type)


def get_property(element: GraphElement, name: str, expected_type: type[T]) -> T:
    """
    Return the first recorded value of property ``name``.

    Multi-valued properties yield their first value.

    Raises:
        PropertyNotFound: If the element has no value for ``name``.
        TypeMismatch: If the value is not an instance of ``expected_type``.
    """
    values = element.property_values(name)
    if not values:
        raise PropertyNotFound(element.id, name)
    value = values[0]
    if not _matches(value, expected_type):
        raise TypeMismatch(element.id, name, expected_type, value)
    return value


def format_person(person: Vertex) -> str:
    """Render a person vertex as ``<firstName> <lastName> (age <age>)``."""
    first_name = get_property(person, "firstName", str)
    last_name = get_property(person, "lastName", str)
    age = get_property(person, "age", int)
    return f"{first_name} {last_name} (age {age})"
