"""
Tests for TemplateParser normalization and inference.
"""
import pytest

from template_feed.models import LearningResource, ProjectTemplate
from template_feed.pipeline.parser import TemplateParser, slugify


@pytest.fixture
def parser():
    return TemplateParser()


class TestParseBasics:
    def test_empty_title_rejected_in_strict_mode(self, parser):
        assert parser.parse({"title": "", "description": "x"}, "devto", strict_mode=True) is None

    def test_empty_title_gets_default_name_when_lenient(self, parser):
        template = parser.parse({"title": "", "description": "x"}, "devto", strict_mode=False, apply_defaults=True)

        assert template is not None
        assert template.name == "Untitled Project"
        assert template.description == "x"
        assert template.id == "devto-untitled-project"

    def test_null_title_still_yields_valid_template(self, parser):
        template = parser.parse({"title": None}, "roadmap")

        assert isinstance(template, ProjectTemplate)
        assert parser.validate(template)
        assert template.description == "No description available"
        assert template.difficulty == "beginner"
        assert template.time_estimate == "1-2 weeks"

    def test_id_is_source_prefixed_slug(self, parser):
        template = parser.parse({"title": "Build a Chat App!!", "description": "d"}, "github-trending")
        assert template.id == "github-trending-build-a-chat-app"

    def test_name_and_content_aliases(self, parser):
        template = parser.parse({"name": "Todo List", "content": "Track tasks"}, "freecodecamp")

        assert template.name == "Todo List"
        assert template.description == "Track tasks"

    def test_lengths_are_capped(self, parser):
        template = parser.parse({"title": "t" * 500, "description": "d" * 5000}, "devto")

        assert len(template.name) == 200
        assert len(template.description) == 2000

    def test_whitespace_is_trimmed(self, parser):
        template = parser.parse({"title": "  Weather Dashboard \n", "description": "  API app  "}, "devto")
        assert template.name == "Weather Dashboard"
        assert template.description == "API app"

    def test_non_mapping_input_returns_none(self, parser):
        assert parser.parse(None, "devto") is None

    def test_without_defaults_incomplete_record_returns_none(self, parser):
        assert parser.parse({"title": "", "description": "x"}, "devto", apply_defaults=False) is None

    def test_without_defaults_complete_record_parses(self, parser):
        template = parser.parse({"title": "Chat", "description": "Realtime chat"}, "devto", apply_defaults=False)
        assert template.time_estimate == ""


class TestTechStack:
    def test_explicit_tech_stack_wins_over_tags(self, parser):
        template = parser.parse(
            {"title": "A", "description": "d", "techStack": ["Go"], "tags": ["ignored"]}, "s"
        )
        assert template.tech_stack == ["Go"]

    def test_language_string(self, parser):
        template = parser.parse({"title": "A", "description": "d", "language": "Rust", "tags": ["x"]}, "s")
        assert template.tech_stack == ["Rust"]

    def test_tags_fallback(self, parser):
        template = parser.parse({"title": "A", "description": "d", "tags": ["react", "css"]}, "s")
        assert template.tech_stack == ["react", "css"]

    def test_empty_lists_fall_through(self, parser):
        template = parser.parse({"title": "A", "description": "d", "techStack": [], "tags": ["vue"]}, "s")
        assert template.tech_stack == ["vue"]

    def test_duplicates_removed_in_order(self, parser):
        template = parser.parse({"title": "A", "description": "d", "tags": ["React", "react", "CSS"]}, "s")
        assert template.tech_stack == ["React", "CSS"]

    def test_keywords_from_description(self, parser):
        template = parser.parse(
            {"title": "Links", "description": "A Django REST API with PostgreSQL and Docker"}, "s"
        )
        assert template.tech_stack == ["Django", "Docker", "PostgreSQL", "REST", "API"]


class TestExtractSkills:
    def test_whole_token_matching(self, parser):
        assert parser.extract_skills("I love JavaScript and good coffee") == ["JavaScript"]

    def test_symbols_in_keywords(self, parser):
        skills = parser.extract_skills("Written in C++ and C# with a CI/CD pipeline on Node.js")
        assert skills == ["C++", "C#", "Node.js", "CI/CD"]

    def test_case_insensitive(self, parser):
        assert parser.extract_skills("python and REDIS") == ["Python", "Redis"]

    def test_empty_text(self, parser):
        assert parser.extract_skills("") == []


class TestDifficulty:
    @pytest.mark.parametrize("level,expected", [
        ("Easy", "beginner"),
        ("Beginner friendly", "beginner"),
        ("HARD mode", "advanced"),
        ("advanced", "advanced"),
        ("medium", "intermediate"),
        ("Intermediate", "intermediate"),
    ])
    def test_explicit_level(self, parser, level, expected):
        template = parser.parse({"title": "A", "description": "d", "level": level}, "s")
        assert template.difficulty == expected

    def test_description_hint_beats_stack(self, parser):
        assert parser.infer_difficulty("A simple intro project", ["Kubernetes"]) == "beginner"
        assert parser.infer_difficulty("Production-ready service", []) == "advanced"

    def test_advanced_technology(self, parser):
        assert parser.infer_difficulty("", ["Python", "Redis"]) == "advanced"

    def test_stack_size(self, parser):
        assert parser.infer_difficulty("", ["a", "b", "c", "d", "e", "f"]) == "advanced"
        assert parser.infer_difficulty("", ["a", "b", "c"]) == "intermediate"
        assert parser.infer_difficulty("", ["a"]) == "beginner"

    def test_feature_count(self, parser):
        assert parser.infer_difficulty("", [], [f"f{i}" for i in range(9)]) == "advanced"
        assert parser.infer_difficulty("", [], [f"f{i}" for i in range(5)]) == "intermediate"


class TestCategory:
    @pytest.mark.parametrize("stack,expected", [
        (["React", "Node.js"], "fullstack"),
        (["Docker"], "devops"),
        (["Swift"], "mobile"),
        (["React Native", "Node"], "mobile"),
        (["Django"], "backend"),
        (["Vue"], "frontend"),
        (["Rust"], ""),
        ([], ""),
    ])
    def test_infer_category(self, parser, stack, expected):
        assert parser.infer_category(stack) == expected

    def test_explicit_category_normalized(self, parser):
        template = parser.parse({"title": "A", "description": "d", "category": "Backend", "tags": ["vue"]}, "s")
        assert template.category == "backend"

    def test_invalid_explicit_category_falls_back_to_inference(self, parser):
        template = parser.parse({"title": "A", "description": "d", "category": "gaming", "tags": ["vue"]}, "s")
        assert template.category == "frontend"


class TestSkillsAndResources:
    def test_skills_taught_explicit(self, parser):
        template = parser.parse({"title": "A", "description": "d", "skills": ["Testing"], "tags": ["go"]}, "s")
        assert template.skills_taught == ["Testing"]

    def test_skills_taught_defaults_to_stack(self, parser):
        template = parser.parse({"title": "A", "description": "d", "tags": ["go"]}, "s")
        assert template.skills_taught == ["go"]

    def test_url_becomes_article_resource(self, parser):
        template = parser.parse({"title": "Chat", "description": "d", "url": "https://x.test/chat"}, "s")
        assert template.learning_resources == [
            LearningResource(title="Chat", url="https://x.test/chat", type="article")
        ]

    def test_resources_are_mapped(self, parser):
        template = parser.parse({
            "title": "A",
            "description": "d",
            "resources": [
                {"name": "Docs", "link": "https://docs.test", "type": "docs", "provider": "Acme"},
                {"url": "https://blog.test", "type": "podcast"},
                "not a mapping",
            ],
        }, "s")

        first, second = template.learning_resources
        assert first.title == "Docs"
        assert first.url == "https://docs.test"
        assert first.type == "docs"
        assert first.provider == "Acme"
        assert second.title == "Resource"
        assert second.type == "article"

    def test_features_kept_in_order(self, parser):
        template = parser.parse({"title": "A", "description": "d", "features": ["Login", "", "Search"]}, "s")
        assert template.features == ["Login", "Search"]

    def test_single_string_feature_is_wrapped(self, parser):
        template = parser.parse({"title": "Chat", "description": "d", "features": "Realtime chat"}, "s")
        assert template.features == ["Realtime chat"]

    def test_non_list_features_are_ignored(self, parser):
        template = parser.parse({"title": "Chat", "description": "d", "features": 3}, "s")
        assert template is not None
        assert template.features == []
        assert template.difficulty in ("beginner", "intermediate", "advanced")


class TestValidateAndDefaults:
    def test_validate_rejects_missing_fields(self, parser):
        assert not parser.validate({"id": "x", "name": "", "description": "d", "tech_stack": [], "difficulty": "beginner"})
        assert not parser.validate({"id": "x", "name": "n", "description": "d", "tech_stack": None, "difficulty": "beginner"})
        assert not parser.validate({"id": "x", "name": "n", "description": "d", "tech_stack": [], "difficulty": "expert"})
        assert not parser.validate({"id": "x", "name": "n", "description": "d", "tech_stack": [], "difficulty": "beginner", "category": "games"})

    def test_validate_accepts_complete(self, parser):
        assert parser.validate({"id": "x", "name": "n", "description": "d", "tech_stack": [], "difficulty": "advanced", "category": ""})

    def test_apply_defaults_coerces_out_of_enum_values(self, parser):
        template = parser.apply_defaults({"id": "s-x", "name": "X", "difficulty": "expert", "category": "games"})

        assert template.difficulty == "beginner"
        assert template.category == ""
        assert template.description == "No description available"

    def test_apply_defaults_generates_id_when_missing(self, parser):
        assert parser.apply_defaults({"name": "Chat App"}).id == "template-chat-app"


class TestSerialization:
    def test_to_dict_uses_camel_case_keys(self, parser):
        template = parser.parse({"title": "Chat", "description": "d", "tags": ["go"]}, "s")
        data = template.to_dict()

        assert data["techStack"] == ["go"]
        assert "skillsTaught" in data
        assert "timeEstimate" in data
        assert "learningResources" in data
        assert ProjectTemplate.from_dict(data) == template


def test_slugify():
    assert slugify("  Hello, World!  ") == "hello-world"
    assert slugify("---") == ""
