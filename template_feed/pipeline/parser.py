"""
Template parser.

Turns loosely structured scraped records (RawTemplate) into schema-complete
ProjectTemplate instances. Missing fields are inferred from what is present:
tech stack from tags or description keywords, difficulty from explicit level
text or stack complexity, category from the tech stack.
"""
import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from template_feed.models import (
    CATEGORIES,
    DIFFICULTIES,
    RESOURCE_TYPES,
    LearningResource,
    ProjectTemplate,
    RawTemplate,
)

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000

DEFAULT_NAME = "Untitled Project"
DEFAULT_DESCRIPTION = "No description available"
DEFAULT_TIME_ESTIMATE = "1-2 weeks"

TECH_KEYWORDS = [
    "JavaScript", "TypeScript", "Python", "Java", "C++", "C#", "Ruby", "Go",
    "Rust", "PHP", "Swift", "Kotlin", "React", "Vue", "Angular", "Node.js",
    "Express", "Django", "Flask", "Spring", "Docker", "Kubernetes", "AWS",
    "Azure", "GCP", "MongoDB", "PostgreSQL", "MySQL", "Redis", "GraphQL",
    "REST", "API", "HTML", "CSS", "SQL", "NoSQL", "Git", "CI/CD", "Testing",
    "TDD", "Agile",
]

BEGINNER_HINTS = ["beginner", "basic", "simple", "intro"]
ADVANCED_HINTS = ["advanced", "complex", "expert", "production"]
ADVANCED_TECH = [
    "kubernetes", "microservices", "distributed", "scalability",
    "redis", "graphql", "websocket", "real-time",
]

FRONTEND_KEYWORDS = ["react", "vue", "angular", "html", "css", "tailwind", "sass", "webpack", "vite"]
BACKEND_KEYWORDS = ["node", "express", "django", "flask", "spring", "api", "database", "sql", "mongodb", "postgresql"]
DEVOPS_KEYWORDS = ["docker", "kubernetes", "ci/cd", "jenkins", "terraform", "ansible", "aws", "azure", "gcp"]
MOBILE_KEYWORDS = ["react native", "flutter", "swift", "kotlin", "ios", "android", "mobile"]

# Whole-token match so "Java" does not fire on "JavaScript" nor "Go" on "good"
_KEYWORD_PATTERNS = [
    (keyword, re.compile(r"(?<![A-Za-z0-9])" + re.escape(keyword) + r"(?![A-Za-z0-9])", re.IGNORECASE))
    for keyword in TECH_KEYWORDS
]


def slugify(text: str) -> str:
    """Lowercase, collapse every run of non [a-z0-9] into '-', trim dashes"""
    return re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")


def _sanitize(value: Any, max_length: int) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return value.strip()[:max_length]


def _unique_strings(items: Iterable[Any]) -> List[str]:
    """Keep non-empty strings, first occurrence wins, order preserved"""
    seen = set()
    result = []
    for item in items:
        if not isinstance(item, str):
            continue
        item = item.strip()
        key = item.lower()
        if item and key not in seen:
            seen.add(key)
            result.append(item)
    return result


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return _unique_strings(value)


def _first_list(raw: Mapping[str, Any], keys: Iterable[str]) -> Optional[List[str]]:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, (list, tuple)):
            cleaned = _unique_strings(value)
            if cleaned:
                return cleaned
    return None


class TemplateParser:
    """
    Normalizes raw scraped records into ProjectTemplate.

    Parsing never raises: a record that cannot be turned into a template
    yields None so one bad item does not abort a batch.
    """

    def parse(
        self,
        raw: RawTemplate,
        source: str,
        strict_mode: bool = False,
        apply_defaults: bool = True,
    ) -> Optional[ProjectTemplate]:
        """
        Parse one raw record.

        Args:
            raw: Scraped record (every field optional)
            source: Source name, used as the id prefix
            strict_mode: Reject records missing a title or description
                instead of filling defaults
            apply_defaults: Fill any remaining gaps so the result is
                schema-complete

        Returns:
            ProjectTemplate, or None if the record was rejected
        """
        try:
            title = _sanitize(raw.get("title") or raw.get("name"), MAX_TITLE_LENGTH)
            description = _sanitize(raw.get("description") or raw.get("content"), MAX_DESCRIPTION_LENGTH)

            if strict_mode and (not title or not description):
                logger.debug(f"[parser] Rejecting {source} record without title/description")
                return None

            tech_stack = self.extract_tech_stack(raw)
            partial = {
                "id": self.generate_id(title, source),
                "name": title,
                "description": description,
                "tech_stack": tech_stack,
                "difficulty": self._extract_difficulty(raw, tech_stack),
                "time_estimate": _sanitize(raw.get("timeEstimate") or raw.get("duration"), 100),
                "skills_taught": self._extract_skills_taught(raw, tech_stack),
                "category": self._extract_category(raw, tech_stack),
                "features": _string_list(raw.get("features")),
                "learning_resources": self._extract_learning_resources(raw, title),
            }

            if not self.validate(partial) and strict_mode:
                return None

            if apply_defaults:
                return self.apply_defaults(partial)
            return ProjectTemplate(**partial)
        except Exception as e:
            logger.warning(f"[parser] Error parsing template from {source}: {e}")
            return None

    def validate(self, template: Union[Mapping[str, Any], ProjectTemplate]) -> bool:
        """Check required fields and enum membership of a (partial) template"""
        if isinstance(template, ProjectTemplate):
            template = template.model_dump()

        for field in ("id", "name", "description"):
            value = template.get(field)
            if not isinstance(value, str) or not value:
                return False

        if not isinstance(template.get("tech_stack"), list):
            return False

        if template.get("difficulty") not in DIFFICULTIES:
            return False

        if template.get("category") is not None and template.get("category") not in CATEGORIES:
            return False

        return True

    def apply_defaults(self, template: Mapping[str, Any]) -> ProjectTemplate:
        """Fill every missing field so the result is schema-complete"""
        name = template.get("name") or DEFAULT_NAME
        difficulty = template.get("difficulty")
        if difficulty not in DIFFICULTIES:
            difficulty = "beginner"
        category = template.get("category") or ""
        if category not in CATEGORIES:
            category = ""

        return ProjectTemplate(
            id=template.get("id") or self.generate_id(name, "template"),
            name=name,
            description=template.get("description") or DEFAULT_DESCRIPTION,
            tech_stack=list(template.get("tech_stack") or []),
            difficulty=difficulty,
            time_estimate=template.get("time_estimate") or DEFAULT_TIME_ESTIMATE,
            skills_taught=list(template.get("skills_taught") or []),
            category=category,
            features=list(template.get("features") or []),
            learning_resources=list(template.get("learning_resources") or []),
        )

    def extract_skills(self, text: str) -> List[str]:
        """Return vocabulary technologies mentioned in text, in vocabulary order"""
        if not text:
            return []
        return [keyword for keyword, pattern in _KEYWORD_PATTERNS if pattern.search(text)]

    def extract_tech_stack(self, raw: Mapping[str, Any]) -> List[str]:
        stack = _first_list(raw, ("techStack", "technologies", "tech"))
        if stack:
            return stack

        language = raw.get("language")
        if isinstance(language, str) and language.strip():
            return [language.strip()]

        stack = _first_list(raw, ("languages", "tags"))
        if stack:
            return stack

        return self.extract_skills(_sanitize(raw.get("description") or raw.get("content"), MAX_DESCRIPTION_LENGTH))

    def infer_difficulty(
        self,
        description: str = "",
        tech_stack: Optional[List[str]] = None,
        features: Optional[List[str]] = None,
    ) -> str:
        """
        Guess difficulty when no explicit level is given.

        Description keywords win; otherwise advanced technologies or a large
        stack/feature list mean advanced, a medium one intermediate.
        """
        text = (description or "").lower()
        tech_stack = tech_stack or []
        features = features or []

        if any(hint in text for hint in BEGINNER_HINTS):
            return "beginner"
        if any(hint in text for hint in ADVANCED_HINTS):
            return "advanced"

        has_advanced_tech = any(adv in tech.lower() for tech in tech_stack for adv in ADVANCED_TECH)
        if has_advanced_tech or len(tech_stack) > 5 or len(features) > 8:
            return "advanced"
        if len(tech_stack) > 2 or len(features) > 4:
            return "intermediate"
        return "beginner"

    def infer_category(self, tech_stack: List[str]) -> str:
        stack = " ".join(tech.lower() for tech in tech_stack)

        has_frontend = any(k in stack for k in FRONTEND_KEYWORDS)
        has_backend = any(k in stack for k in BACKEND_KEYWORDS)

        if any(k in stack for k in MOBILE_KEYWORDS):
            return "mobile"
        if any(k in stack for k in DEVOPS_KEYWORDS):
            return "devops"
        if has_frontend and has_backend:
            return "fullstack"
        if has_backend:
            return "backend"
        if has_frontend:
            return "frontend"
        return ""

    @staticmethod
    def generate_id(title: str, source: str) -> str:
        return f"{source}-{slugify(title) or slugify(DEFAULT_NAME)}"

    def _extract_difficulty(self, raw: Mapping[str, Any], tech_stack: List[str]) -> str:
        level = _sanitize(raw.get("difficulty") or raw.get("level"), 100).lower()

        if "beginner" in level or "easy" in level:
            return "beginner"
        if "advanced" in level or "hard" in level:
            return "advanced"
        if "intermediate" in level or "medium" in level:
            return "intermediate"

        return self.infer_difficulty(
            description=_sanitize(raw.get("description") or raw.get("content"), MAX_DESCRIPTION_LENGTH),
            tech_stack=tech_stack,
            features=_string_list(raw.get("features")),
        )

    def _extract_skills_taught(self, raw: Mapping[str, Any], tech_stack: List[str]) -> List[str]:
        skills = _first_list(raw, ("skillsTaught", "skills"))
        if skills:
            return skills
        if tech_stack:
            return list(tech_stack)
        return self.extract_skills(_sanitize(raw.get("description") or raw.get("content"), MAX_DESCRIPTION_LENGTH))

    def _extract_category(self, raw: Mapping[str, Any], tech_stack: List[str]) -> str:
        category = raw.get("category")
        if isinstance(category, str) and category.strip().lower() in CATEGORIES and category.strip():
            return category.strip().lower()
        return self.infer_category(tech_stack)

    def _extract_learning_resources(self, raw: Mapping[str, Any], title: str) -> List[LearningResource]:
        explicit = raw.get("learningResources")
        if isinstance(explicit, list) and explicit:
            return [r for r in (self._coerce_resource(item) for item in explicit) if r is not None]

        resources = raw.get("resources")
        if isinstance(resources, list) and resources:
            return [r for r in (self._coerce_resource(item) for item in resources) if r is not None]

        url = raw.get("url")
        if isinstance(url, str) and url:
            return [LearningResource(title=title or "Source", url=url, type="article")]

        return []

    @staticmethod
    def _coerce_resource(item: Any) -> Optional[LearningResource]:
        if isinstance(item, LearningResource):
            return item
        if not isinstance(item, dict):
            return None

        resource_type = item.get("type")
        if resource_type not in RESOURCE_TYPES:
            resource_type = "article"
        data: Dict[str, Any] = {
            "title": _sanitize(item.get("title") or item.get("name"), MAX_TITLE_LENGTH) or "Resource",
            "url": _sanitize(item.get("url") or item.get("link"), 2000),
            "type": resource_type,
        }
        for optional in ("provider", "duration"):
            if isinstance(item.get(optional), str):
                data[optional] = item[optional]
        return LearningResource(**data)
