"""
Data models for project templates.

ProjectTemplate and LearningResource are immutable pydantic models that
serialize with camelCase keys (techStack, skillsTaught, ...) so cached rows
and API payloads share one wire shape. RawTemplate is the loose,
fully-optional record that source adapters hand to the parser.
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Difficulty = Literal["beginner", "intermediate", "advanced"]
Category = Literal["frontend", "backend", "fullstack", "devops", "mobile", ""]
ResourceType = Literal["tutorial", "docs", "video", "article", "example"]

DIFFICULTIES = ("beginner", "intermediate", "advanced")
CATEGORIES = ("frontend", "backend", "fullstack", "devops", "mobile", "")
RESOURCE_TYPES = ("tutorial", "docs", "video", "article", "example")


class LearningResource(BaseModel):
    """A link that helps someone build the project"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    title: str
    url: str
    type: ResourceType = "article"
    provider: Optional[str] = None
    duration: Optional[str] = None


class ProjectTemplate(BaseModel):
    """Canonical, schema-complete project template"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    tech_stack: List[str] = Field(default_factory=list)
    difficulty: Difficulty = "beginner"
    time_estimate: str = ""
    skills_taught: List[str] = Field(default_factory=list)
    category: Category = ""
    features: List[str] = Field(default_factory=list)
    learning_resources: List[LearningResource] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, dropping unset optional resource fields"""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectTemplate":
        return cls.model_validate(data)


class RawTemplate(TypedDict, total=False):
    """Scraped record before normalization. Every field is optional."""

    title: Optional[str]
    name: Optional[str]
    description: Optional[str]
    content: Optional[str]
    tags: List[str]
    language: Optional[str]
    languages: List[str]
    difficulty: Optional[str]
    level: Optional[str]
    url: Optional[str]
    stars: Optional[int]
    techStack: List[str]
    technologies: List[str]
    tech: List[str]
    timeEstimate: Optional[str]
    duration: Optional[str]
    skillsTaught: List[str]
    skills: List[str]
    category: Optional[str]
    features: List[str]
    learningResources: List[Dict[str, Any]]
    resources: List[Any]
    source: str


class CacheEntry(BaseModel):
    """One cached template row keyed by (template_id, source)"""

    template_id: str
    source: str
    template_data: ProjectTemplate
    source_url: Optional[str] = None
    fetched_at: datetime
    expires_at: datetime

    def is_stale(self, now: datetime) -> bool:
        return now > self.expires_at
