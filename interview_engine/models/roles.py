"""
Role and experience definitions for the interview engine

Defines the taxonomy used to tailor questions:
- Experience levels and the depth expected at each
- Known target roles and the technical topics they cover
"""

from enum import Enum

from pydantic import BaseModel


class ExperienceLevel(str, Enum):
    """Candidate experience level."""

    FRESHER = "fresher"
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"

    @property
    def display_name(self) -> str:
        """Human-readable level name."""
        return self.value.capitalize()


class ExperienceComplexity(BaseModel):
    """How deep and how hard questions should be for a level."""

    depth: str
    complexity: str
    expectation: str


EXPERIENCE_COMPLEXITY: dict[ExperienceLevel, ExperienceComplexity] = {
    ExperienceLevel.FRESHER: ExperienceComplexity(
        depth="basic concepts and fundamentals",
        complexity="straightforward",
        expectation="theoretical understanding with simple examples",
    ),
    ExperienceLevel.JUNIOR: ExperienceComplexity(
        depth="practical implementation",
        complexity="moderate",
        expectation="hands-on experience with common scenarios",
    ),
    ExperienceLevel.MID: ExperienceComplexity(
        depth="architecture and design decisions",
        complexity="intermediate",
        expectation="problem-solving with real-world trade-offs",
    ),
    ExperienceLevel.SENIOR: ExperienceComplexity(
        depth="system design and leadership",
        complexity="advanced",
        expectation="strategic thinking and mentorship experience",
    ),
    ExperienceLevel.LEAD: ExperienceComplexity(
        depth="organizational impact and vision",
        complexity="expert",
        expectation="cross-team collaboration and technical strategy",
    ),
}


# =============================================================================
# ROLE TOPICS
# =============================================================================

ROLE_TOPICS: dict[str, list[str]] = {
    "frontend": [
        "JavaScript", "React", "Vue", "Angular", "CSS",
        "HTML5", "TypeScript", "Web Performance", "Accessibility", "Testing",
    ],
    "backend": [
        "Node.js", "Python", "Java", "Database Design", "REST APIs",
        "GraphQL", "Microservices", "Security", "Caching", "Message Queues",
    ],
    "fullstack": [
        "JavaScript", "Node.js", "React", "Database", "API Design",
        "DevOps", "System Design", "Security", "Testing", "Performance",
    ],
    "devops": [
        "CI/CD", "Docker", "Kubernetes", "Cloud Services", "Infrastructure as Code",
        "Monitoring", "Security", "Networking", "Linux", "Automation",
    ],
    "data-engineer": [
        "SQL", "ETL", "Data Warehousing", "Python", "Spark",
        "Airflow", "Data Modeling", "Big Data", "Cloud Data Services", "Data Quality",
    ],
    "mobile": [
        "React Native", "Flutter", "iOS", "Android", "Mobile UI/UX",
        "App Performance", "Push Notifications", "Mobile Security", "Offline Storage", "Testing",
    ],
}

DEFAULT_ROLE_KEY = "fullstack"


def normalize_role(role: str) -> str:
    """Normalize a free-text role for cohort comparisons."""
    return " ".join(role.split()).casefold()


def get_complexity(level: ExperienceLevel | str) -> ExperienceComplexity:
    """Get the complexity profile for a level, defaulting to mid."""
    try:
        return EXPERIENCE_COMPLEXITY[ExperienceLevel(level)]
    except ValueError:
        return EXPERIENCE_COMPLEXITY[ExperienceLevel.MID]


def get_topics_for_role(role: str) -> list[str]:
    """
    Get technical topics for a free-text role.

    Matches known role keys ignoring case and whitespace, then by
    substring ("Senior Backend Developer" matches "backend").
    Unknown roles fall back to the full-stack topic list.
    """
    key = "".join(role.split()).lower()
    if key in ROLE_TOPICS:
        return ROLE_TOPICS[key]

    for role_key, topics in ROLE_TOPICS.items():
        if role_key in key or role_key.replace("-", "") in key:
            return topics

    return ROLE_TOPICS[DEFAULT_ROLE_KEY]


def get_available_roles() -> list[dict]:
    """List known roles with display names and topics."""
    return [
        {
            "id": key,
            "name": " ".join(part.capitalize() for part in key.split("-")),
            "topics": topics,
        }
        for key, topics in ROLE_TOPICS.items()
    ]


def get_experience_levels() -> list[dict]:
    """List experience levels with their complexity profile."""
    return [
        {
            "id": level.value,
            "name": level.display_name,
            **profile.model_dump(),
        }
        for level, profile in EXPERIENCE_COMPLEXITY.items()
    ]
