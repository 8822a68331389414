"""Mapping classified events to authorization tuples."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from .classifier import ClassifiedFields
from .events import ObjectType

# (subject type, object type) -> relation on the object type
DEFAULT_RELATIONS: Dict[Tuple[ObjectType, ObjectType], str] = {
    (ObjectType.USER, ObjectType.ROLE): "assignee",
    (ObjectType.ROLE, ObjectType.ROLE): "parent",
    (ObjectType.GROUP, ObjectType.ROLE): "parent_group",
    (ObjectType.USER, ObjectType.GROUP): "assignee",
}


def format_object(object_type: ObjectType, identifier: str) -> str:
    """Format a typed identifier as ``type:id``."""
    return f"{object_type.value}:{identifier}"


@dataclass(frozen=True)
class RelationTuple:
    """One (subject, relation, object) fact.

    Attributes:
        subject: Typed subject, e.g. "user:u1"
        relation: Relation on the object type, e.g. "assignee"
        object: Typed object, e.g. "role:admin"
    """

    subject: str
    relation: str
    object: str

    @property
    def subject_type(self) -> str:
        return self.subject.split(":", 1)[0]

    @property
    def object_type(self) -> str:
        return self.object.split(":", 1)[0]

    def to_tuple_key(self) -> Dict[str, str]:
        """OpenFGA wire form (the subject travels as ``user``)."""
        return {"user": self.subject, "relation": self.relation, "object": self.object}

    def __str__(self) -> str:
        return f"{self.object}#{self.relation}@{self.subject}"


class TupleMapper:
    """Builds RelationTuples from ClassifiedFields.

    The mapper does no schema validation; a relation name the remote model
    does not define is only caught when the write is rejected (or by the
    publisher's optional local check).
    """

    def __init__(self, relations: Optional[Mapping[Tuple[ObjectType, ObjectType], str]] = None):
        self.relations = dict(DEFAULT_RELATIONS if relations is None else relations)

    def relation_for(self, subject_type: ObjectType, object_type: ObjectType) -> Optional[str]:
        return self.relations.get((subject_type, object_type))

    def to_tuple(self, fields: ClassifiedFields) -> Optional[RelationTuple]:
        """Map fields to a tuple, or None when the event is not applicable.

        Not applicable means: no relation for the type pair, or an empty
        subject id, subject name (role subjects) or object name.
        """
        relation = self.relation_for(fields.subject_type, fields.object_type)
        if not relation:
            return None
        if not fields.subject_id or not fields.subject_key or not fields.object_name:
            return None
        return RelationTuple(
            subject=format_object(fields.subject_type, fields.subject_key),
            relation=relation,
            object=format_object(fields.object_type, fields.object_name),
        )
