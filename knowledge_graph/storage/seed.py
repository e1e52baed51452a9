"""
Initial knowledge graph shipped with every store.

Concepts are listed in insertion order; relationships refer to concepts
by name and are resolved to ids when the seed is loaded.
"""

from datetime import datetime
from typing import List, Tuple

from ..models import ConceptCreate, ConceptRelationshipCreate, Difficulty, RelationshipType


# Seed rows carry a fixed timestamp so freshly seeded stores compare equal.
SEED_TIMESTAMP = datetime(2024, 1, 1)

SEED_CONCEPTS: List[ConceptCreate] = [
    # Physics
    ConceptCreate(
        name="Classical Mechanics",
        domain="Physics",
        difficulty=Difficulty.INTERMEDIATE,
        description="The study of the motion of bodies under the action of forces",
    ),
    ConceptCreate(
        name="Newton's Laws",
        domain="Physics",
        difficulty=Difficulty.INTERMEDIATE,
        description="Three fundamental laws that form the foundation of classical mechanics",
    ),
    ConceptCreate(
        name="Conservation Laws",
        domain="Physics",
        difficulty=Difficulty.INTERMEDIATE,
        description="Principles stating that certain physical properties do not change over time",
    ),
    ConceptCreate(
        name="Kinematics",
        domain="Physics",
        difficulty=Difficulty.BEGINNER,
        description="The study of motion without considering its causes",
    ),
    ConceptCreate(
        name="Rotational Motion",
        domain="Physics",
        difficulty=Difficulty.INTERMEDIATE,
        description="The study of the motion of objects around an axis",
    ),
    # Mathematics
    ConceptCreate(
        name="Vector Calculus",
        domain="Mathematics",
        difficulty=Difficulty.ADVANCED,
        description="The study of calculus in vector spaces",
    ),
    ConceptCreate(
        name="Differential Equations",
        domain="Mathematics",
        difficulty=Difficulty.ADVANCED,
        description="Equations that relate functions with their derivatives",
    ),
    ConceptCreate(
        name="Basic Calculus",
        domain="Mathematics",
        difficulty=Difficulty.INTERMEDIATE,
        description="The foundation of calculus covering limits, derivatives, and integrals",
    ),
    # Computer Science
    ConceptCreate(
        name="Data Structures",
        domain="Computer Science",
        difficulty=Difficulty.INTERMEDIATE,
        description="Ways of organizing and storing data for efficient access and modification",
    ),
    ConceptCreate(
        name="Algorithm Analysis",
        domain="Computer Science",
        difficulty=Difficulty.INTERMEDIATE,
        description="The determination of the computational complexity of algorithms",
    ),
    # Economics
    ConceptCreate(
        name="Microeconomics",
        domain="Economics",
        difficulty=Difficulty.INTERMEDIATE,
        description=(
            "The study of individual and business decisions regarding the "
            "allocation of resources and prices of goods and services"
        ),
    ),
    ConceptCreate(
        name="Macroeconomics",
        domain="Economics",
        difficulty=Difficulty.INTERMEDIATE,
        description=(
            "The study of the behavior of the economy as a whole, including "
            "inflation, unemployment, and economic growth"
        ),
    ),
    ConceptCreate(
        name="Game Theory",
        domain="Economics",
        difficulty=Difficulty.ADVANCED,
        description=(
            "The study of mathematical models of strategic interaction "
            "between rational decision-makers"
        ),
    ),
    # Sociology
    ConceptCreate(
        name="Social Structures",
        domain="Sociology",
        difficulty=Difficulty.BEGINNER,
        description=(
            "The study of how society is organized and how social "
            "institutions influence human behavior"
        ),
    ),
    ConceptCreate(
        name="Social Inequality",
        domain="Sociology",
        difficulty=Difficulty.INTERMEDIATE,
        description="The study of unequal distribution of resources and opportunities in society",
    ),
    ConceptCreate(
        name="Urban Sociology",
        domain="Sociology",
        difficulty=Difficulty.INTERMEDIATE,
        description="The study of social life and interactions in urban areas",
    ),
    # Psychology
    ConceptCreate(
        name="Cognitive Psychology",
        domain="Psychology",
        difficulty=Difficulty.INTERMEDIATE,
        description=(
            "The study of mental processes such as attention, language use, "
            "memory, perception, problem solving, and thinking"
        ),
    ),
    ConceptCreate(
        name="Developmental Psychology",
        domain="Psychology",
        difficulty=Difficulty.INTERMEDIATE,
        description="The study of how humans develop psychologically from infancy to old age",
    ),
    ConceptCreate(
        name="Clinical Psychology",
        domain="Psychology",
        difficulty=Difficulty.ADVANCED,
        description=(
            "The integration of science, theory, and clinical knowledge for "
            "understanding, preventing, and relieving psychological distress"
        ),
    ),
    # Human Science
    ConceptCreate(
        name="Anthropology",
        domain="Human Science",
        difficulty=Difficulty.INTERMEDIATE,
        description="The study of human biological and cultural development throughout history",
    ),
    ConceptCreate(
        name="Linguistics",
        domain="Human Science",
        difficulty=Difficulty.INTERMEDIATE,
        description="The scientific study of language and its structure",
    ),
    ConceptCreate(
        name="Human Geography",
        domain="Human Science",
        difficulty=Difficulty.INTERMEDIATE,
        description=(
            "The study of the relationship between human societies and "
            "their physical environment"
        ),
    ),
]

_PREREQ = RelationshipType.PREREQUISITE
_RELATED = RelationshipType.RELATED

# (source name, target name, type, strength)
SEED_RELATIONSHIPS: List[Tuple[str, str, RelationshipType, int]] = [
    ("Classical Mechanics", "Newton's Laws", _RELATED, 9),
    ("Classical Mechanics", "Conservation Laws", _RELATED, 8),
    ("Classical Mechanics", "Kinematics", _RELATED, 7),
    ("Classical Mechanics", "Rotational Motion", _RELATED, 7),
    ("Vector Calculus", "Classical Mechanics", _PREREQ, 6),
    ("Basic Calculus", "Classical Mechanics", _PREREQ, 8),
    ("Classical Mechanics", "Differential Equations", _RELATED, 7),
    ("Newton's Laws", "Kinematics", _RELATED, 8),
    ("Conservation Laws", "Differential Equations", _RELATED, 6),
    ("Vector Calculus", "Conservation Laws", _PREREQ, 7),
    # Economics
    ("Microeconomics", "Macroeconomics", _RELATED, 8),
    ("Game Theory", "Microeconomics", _RELATED, 7),
    ("Basic Calculus", "Macroeconomics", _PREREQ, 6),
    # Sociology
    ("Social Structures", "Social Inequality", _RELATED, 8),
    ("Social Structures", "Urban Sociology", _RELATED, 7),
    # Psychology
    ("Cognitive Psychology", "Developmental Psychology", _RELATED, 7),
    ("Cognitive Psychology", "Clinical Psychology", _RELATED, 6),
    # Human Science
    ("Anthropology", "Linguistics", _RELATED, 6),
    ("Anthropology", "Human Geography", _RELATED, 7),
    # Cross-domain
    ("Game Theory", "Cognitive Psychology", _RELATED, 5),
    ("Social Structures", "Anthropology", _RELATED, 7),
    ("Urban Sociology", "Human Geography", _RELATED, 8),
    # Prerequisite chains
    ("Basic Calculus", "Vector Calculus", _PREREQ, 8),
    ("Data Structures", "Algorithm Analysis", _PREREQ, 7),
]


def resolve_seed_relationships(name_to_id: dict) -> List[ConceptRelationshipCreate]:
    """Turn the name-based seed edges into create models using stored ids."""
    return [
        ConceptRelationshipCreate(
            source_id=name_to_id[source],
            target_id=name_to_id[target],
            relationship_type=relationship_type,
            strength=strength,
        )
        for source, target, relationship_type, strength in SEED_RELATIONSHIPS
    ]
