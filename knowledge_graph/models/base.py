"""
Base domain models for the knowledge graph.

These models are storage-agnostic and are shared by the in-memory
store and the relational backend. Stored records are frozen; changes
produce copies.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def utcnow() -> datetime:
    """Naive UTC timestamp, the form persisted by both backends."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Difficulty(str, Enum):
    """Difficulty levels for concepts."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class RelationshipType(str, Enum):
    """Types of directed concept edges."""
    PREREQUISITE = "prerequisite"  # source must be learned before target
    RELATED = "related"


def _non_blank(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must not be blank")
    return value


def _lowercase_enum(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


# =========================================================
# USERS
# =========================================================

class UserCreate(BaseModel):
    """Fields accepted when registering a user."""

    username: str = Field(..., min_length=1)
    password: str
    email: Optional[str] = None

    model_config = {"from_attributes": True}


class User(UserCreate):
    """A stored user. Only used as an anchor for progress and chat rows."""

    id: int
    created_at: datetime = Field(default_factory=utcnow)

    model_config = {"from_attributes": True, "frozen": True}


# =========================================================
# CONCEPTS
# =========================================================

class ConceptCreate(BaseModel):
    """
    Fields accepted when creating a concept.

    Domains are free-form; the set of domains is whatever the
    stored concepts use.
    """

    name: str
    domain: str
    difficulty: Difficulty
    description: str

    model_config = {"from_attributes": True}

    @field_validator("name", "domain", "description")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        return _non_blank(value)

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, value):
        return _lowercase_enum(value)


class Concept(ConceptCreate):
    """A unit of learnable knowledge. Immutable once stored."""

    id: int
    created_at: datetime = Field(default_factory=utcnow)

    model_config = {"from_attributes": True, "frozen": True}


# =========================================================
# RELATIONSHIPS
# =========================================================

class ConceptRelationshipCreate(BaseModel):
    """
    Fields accepted when creating an edge.

    For prerequisite edges the source is the prerequisite and the
    target is the concept that depends on it.
    """

    source_id: int
    target_id: int
    relationship_type: RelationshipType
    strength: int = Field(..., ge=1, le=10)

    model_config = {"from_attributes": True}

    @field_validator("relationship_type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        return _lowercase_enum(value)


class ConceptRelationship(ConceptRelationshipCreate):
    """A directed, typed, weighted edge. Immutable once stored."""

    id: int
    created_at: datetime = Field(default_factory=utcnow)

    model_config = {"from_attributes": True, "frozen": True}

    def touches(self, concept_id: int) -> bool:
        return self.source_id == concept_id or self.target_id == concept_id

    def other_end(self, concept_id: int) -> int:
        """Neighbor id across this edge as seen from ``concept_id``."""
        return self.target_id if self.source_id == concept_id else self.source_id


# =========================================================
# USER PROGRESS
# =========================================================

class UserProgressCreate(BaseModel):
    """Fields accepted when recording progress for a (user, concept) pair."""

    user_id: int
    concept_id: int
    is_learned: bool = False
    learned_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserProgressUpdate(BaseModel):
    """Partial update for a progress row. Only explicitly set fields apply."""

    is_learned: Optional[bool] = None
    learned_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserProgress(UserProgressCreate):
    """Learned/unlearned state of one concept for one user."""

    id: int

    model_config = {"from_attributes": True, "frozen": True}


def initial_progress_fields(progress: UserProgressCreate) -> dict:
    """Column values for a new progress row, with ``learned_at`` filled in."""
    values = progress.model_dump()
    if values["is_learned"] and values["learned_at"] is None:
        values["learned_at"] = utcnow()
    if not values["is_learned"]:
        values["learned_at"] = None
    return values


def apply_progress_update(
    current: UserProgress,
    update: UserProgressUpdate,
) -> UserProgress:
    """
    Merge a partial update into a progress row.

    ``learned_at`` is stamped when ``is_learned`` goes from false to true
    (unless the caller supplied one), kept on true -> true, and cleared
    when ``is_learned`` becomes false.
    """
    changes = update.model_dump(exclude_unset=True)
    is_learned = changes.get("is_learned")
    if is_learned is None:
        is_learned = current.is_learned
    changes["is_learned"] = is_learned

    if not is_learned:
        changes["learned_at"] = None
    elif changes.get("learned_at") is None:
        if current.is_learned and current.learned_at is not None:
            changes["learned_at"] = current.learned_at
        else:
            changes["learned_at"] = utcnow()

    return current.model_copy(update=changes)


# =========================================================
# CHAT
# =========================================================

class ChatMessageCreate(BaseModel):
    """A chat message about a concept, written by the user or the tutor."""

    user_id: int
    concept_id: int
    message: str = Field(..., min_length=1)
    is_user: bool

    model_config = {"from_attributes": True}


class ChatMessage(ChatMessageCreate):
    id: int
    created_at: datetime = Field(default_factory=utcnow)

    model_config = {"from_attributes": True, "frozen": True}


# =========================================================
# GRAPH VIEW
# =========================================================

class GraphLink(BaseModel):
    """An edge as consumed by the layout component: endpoints are concept ids."""

    source: int
    target: int
    type: str
    strength: int

    @classmethod
    def from_relationship(cls, relationship: ConceptRelationship) -> "GraphLink":
        return cls(
            source=relationship.source_id,
            target=relationship.target_id,
            type=relationship.relationship_type.value,
            strength=relationship.strength,
        )


class KnowledgeGraph(BaseModel):
    """Whole-graph view: every concept plus every edge."""

    nodes: List[Concept] = Field(default_factory=list)
    links: List[GraphLink] = Field(default_factory=list)

    @classmethod
    def from_parts(
        cls,
        nodes: List[Concept],
        relationships: List[ConceptRelationship],
    ) -> "KnowledgeGraph":
        return cls(
            nodes=list(nodes),
            links=[GraphLink.from_relationship(r) for r in relationships],
        )

    def orphan_links(self) -> List[GraphLink]:
        """Links whose source or target is not among the nodes."""
        node_ids = {node.id for node in self.nodes}
        return [
            link for link in self.links
            if link.source not in node_ids or link.target not in node_ids
        ]
