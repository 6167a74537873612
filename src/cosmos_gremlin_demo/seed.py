"""Sample people graph and the Gremlin queries that write and read it."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Person:
    id: str
    first_name: str
    last_name: str
    age: int
    label: str = "person"


PEOPLE: tuple[Person, ...] = (
    Person("thomas.1", "Thomas", "Andersen", 44),
    Person("robin.1", "Robin", "Smith", 42),
    Person("paul.1", "Paul", "Smith", 26),
)

# (source id, target id) in insertion order
KNOWS: tuple[tuple[str, str], ...] = (
    ("thomas.1", "robin.1"),
    ("thomas.1", "paul.1"),
)
KNOWS_LABEL = "knows"
# Whose acquaintances the demo lists
QUERIED_PERSON = PEOPLE[0]


def _check_identifier(value: str, kind: str) -> str:
    if not value.replace("_", "").replace("-", "").isalnum():
        raise ValueError(
            f"Invalid {kind}: {value}. Must be alphanumeric with underscores/hyphens only."
        )
    return value


def gremlin_literal(value: Any) -> str:
    """Render a Python value as a Gremlin-Groovy literal."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
    raise TypeError(f"Cannot render {type(value).__name__} as a Gremlin literal")


def drop_all_query() -> str:
    return "g.V().drop()"


def upsert_vertex_query(person: Person, partition_key: str = "pk") -> str:
    """
    Query adding ``person`` unless a vertex with its id already exists.

    The partition key property is set to the person's id.
    """
    _check_identifier(person.label, "label")
    _check_identifier(partition_key, "partition key property")
    properties = {
        "id": person.id,
        partition_key: person.id,
        "firstName": person.first_name,
        "lastName": person.last_name,
        "age": person.age,
    }
    add_v = f"addV({gremlin_literal(person.label)})" + "".join(
        f".property({gremlin_literal(k)}, {gremlin_literal(v)})"
        for k, v in properties.items()
    )
    return f"g.V({gremlin_literal(person.id)}).fold().coalesce(unfold(), {add_v})"


def upsert_edge_query(source_id: str, target_id: str, label: str = KNOWS_LABEL) -> str:
    """Query adding a ``label`` edge from source to target unless one exists."""
    _check_identifier(label, "edge label")
    edge_label = gremlin_literal(label)
    target = gremlin_literal(target_id)
    return (
        f"g.V({gremlin_literal(source_id)}).coalesce("
        f"outE({edge_label}).where(inV().hasId({target})), "
        f"addE({edge_label}).to(g.V({target})))"
    )


def knows_query(person_id: str) -> str:
    return f"g.V({gremlin_literal(person_id)}).out({gremlin_literal(KNOWS_LABEL)})"
