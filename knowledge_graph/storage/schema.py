"""
Relational layout of the durable store.

Column names match the tables the web application already uses, so an
existing database can be pointed at directly.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    func,
)


metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", Text, nullable=False, unique=True),
    Column("password", Text, nullable=False),
    Column("email", Text, nullable=True),
    Column("created_at", DateTime, server_default=func.now()),
)

concepts = Table(
    "concepts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False, unique=True),
    Column("domain", Text, nullable=False),
    Column("difficulty", Text, nullable=False),
    Column("description", Text, nullable=False),
    Column("created_at", DateTime, server_default=func.now()),
)

concept_relationships = Table(
    "concept_relationships",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("source_id", Integer, ForeignKey("concepts.id"), nullable=False),
    Column("target_id", Integer, ForeignKey("concepts.id"), nullable=False),
    Column("relationship_type", Text, nullable=False),
    Column("strength", Integer, nullable=False),
    Column("created_at", DateTime, server_default=func.now()),
)

user_progress = Table(
    "user_progress",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("concept_id", Integer, ForeignKey("concepts.id"), nullable=False),
    Column("is_learned", Boolean, nullable=False, default=False),
    Column("learned_at", DateTime, nullable=True),
    UniqueConstraint("user_id", "concept_id", name="uq_user_progress_user_concept"),
)

chat_messages = Table(
    "chat_messages",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("concept_id", Integer, ForeignKey("concepts.id"), nullable=False),
    Column("message", Text, nullable=False),
    Column("is_user", Boolean, nullable=False),
    Column("created_at", DateTime, server_default=func.now()),
)
