"""Local snapshot of an OpenFGA authorization model.

Only what is needed to check a tuple before writing it: which relations each
object type defines, and which subject types may be directly related.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional


@dataclass(frozen=True)
class AuthorizationModelSnapshot:
    """Relations and directly related subject types, per object type.

    Attributes:
        model_id: Authorization model id
        schema_version: Model schema version ("1.1", ...)
        relations: object type -> relation -> allowed subject types; an empty
            set means the model carries no type restrictions for that relation
    """

    model_id: str
    schema_version: str = ""
    relations: Dict[str, Dict[str, FrozenSet[str]]] = field(default_factory=dict)

    @classmethod
    def from_model(cls, model: Dict[str, Any]) -> "AuthorizationModelSnapshot":
        """Build a snapshot from a ``ReadAuthorizationModels`` entry."""
        relations: Dict[str, Dict[str, FrozenSet[str]]] = {}
        for type_def in model.get("type_definitions") or []:
            if not isinstance(type_def, dict) or not type_def.get("type"):
                continue
            object_type = type_def["type"]
            metadata = (type_def.get("metadata") or {}).get("relations") or {}
            per_type: Dict[str, FrozenSet[str]] = {}
            for relation in (type_def.get("relations") or {}):
                related = (metadata.get(relation) or {}).get("directly_related_user_types") or []
                per_type[relation] = frozenset(r.get("type") for r in related if isinstance(r, dict) and r.get("type"))
            relations[object_type] = per_type
        return cls(
            model_id=model.get("id", ""),
            schema_version=model.get("schema_version", ""),
            relations=relations,
        )

    def relations_for(self, object_type: str) -> Optional[Dict[str, FrozenSet[str]]]:
        return self.relations.get(object_type)

    def allows(self, object_type: str, relation: str, subject_type: str) -> bool:
        """Whether the model accepts ``subject_type`` on ``object_type#relation``."""
        per_type = self.relations.get(object_type)
        if per_type is None or relation not in per_type:
            return False
        allowed = per_type[relation]
        return not allowed or subject_type in allowed
