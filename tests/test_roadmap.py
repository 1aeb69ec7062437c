import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from northstar.models.goals import GoalTimeline, PeriodUnit
from northstar.services import fallback_templates
from northstar.services.roadmap_service import RoadmapGenerator, parse_timeframe, timeline_months, timeline_text


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


def fake_client(content=None, error=None):
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(content, error)))


def connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))


@pytest.mark.parametrize(
    "label, expected",
    [
        ("Week 1", {"unit": PeriodUnit.WEEK, "ordinal": 1}),
        ("month 12", {"unit": PeriodUnit.MONTH, "ordinal": 12}),
        ("  Month 3 ", {"unit": PeriodUnit.MONTH, "ordinal": 3}),
        ("Week 0", None),
        ("Q3", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_timeframe(label, expected):
    assert parse_timeframe(label) == expected


def test_timeline_helpers():
    assert timeline_months(GoalTimeline.SIX_MONTHS) == 6
    assert timeline_months(GoalTimeline.CUSTOM, 18) == 18
    assert timeline_text(GoalTimeline.ONE_YEAR) == "1 year"
    assert timeline_text(GoalTimeline.THREE_MONTHS) == "3 months"
    assert timeline_text(GoalTimeline.CUSTOM, 1) == "1 month"


def test_first_matching_rule_wins():
    assert fallback_templates.match_roadmap_rule("Get in shape").name == "fitness"
    assert fallback_templates.match_roadmap_rule("Learn Spanish").name == "learning"
    assert fallback_templates.match_roadmap_rule("Write a novel").name == "general"
    assert fallback_templates.match_question_rule("Get a promotion at work").name == "career"
    assert fallback_templates.match_question_rule("Pay off debt").name == "financial"


def test_fallback_milestones_follow_timeline_length():
    short = fallback_templates.fallback_milestones("get in shape", 1)
    long = fallback_templates.fallback_milestones("get in shape", 12)

    assert [m["title"] for m in short] == ["Get Started This Week", "Build Your Foundation"]
    assert len(long) == 5
    assert long[0]["target_period"] == {"unit": PeriodUnit.WEEK, "ordinal": 1}
    assert long[-1]["target_period"] == {"unit": PeriodUnit.MONTH, "ordinal": 12}


def test_fallback_questions_substitute_title_and_timeframe():
    questions = fallback_templates.fallback_questions("Write a novel", "6 months")
    assert len(questions) == 5
    assert '"Write a novel"' in questions[0]

    learning = fallback_templates.fallback_questions("Learn Spanish", "6 months")
    assert "6 months" in learning[-1]


def test_questions_without_api_key_use_fallback():
    response = RoadmapGenerator().generate_questions("Learn Spanish", GoalTimeline.ONE_YEAR)
    assert response.source == "fallback"
    assert len(response.questions) == 5


def test_questions_from_model():
    client = fake_client(json.dumps({"questions": ["How fluent are you now?", "  ", "How much time per day?"]}))
    response = RoadmapGenerator(client=client).generate_questions("Learn Spanish", GoalTimeline.ONE_YEAR)

    assert response.source == "ai"
    assert response.questions == ["How fluent are you now?", "How much time per day?"]
    call = client.chat.completions.calls[0]
    assert call["response_format"] == {"type": "json_object"}
    assert "Learn Spanish" in call["messages"][0]["content"]


def test_milestones_from_model():
    answer = {
        "milestones": [
            {
                "title": "Survival phrases",
                "timeframe": "Week 1",
                "actions": [
                    {
                        "title": "Learn 20 greetings",
                        "resources": [{"name": "Duolingo", "url": "https://duolingo.com", "type": "tool"}],
                    }
                ],
            },
            {"title": "Hold a conversation", "timeframe": "sometime soon", "actions": [{"title": "Book a tutor"}]},
        ]
    }
    response = RoadmapGenerator(client=fake_client(json.dumps(answer))).generate_milestones(
        "Learn Spanish", GoalTimeline.THREE_MONTHS
    )

    assert response.source == "ai"
    first, second = response.milestones
    assert first.target_period.unit == PeriodUnit.WEEK
    assert first.target_period.ordinal == 1
    assert first.actions[0].resources[0].name == "Duolingo"
    assert second.target_period is None


@pytest.mark.parametrize(
    "client",
    [
        fake_client(error=connection_error()),
        fake_client("this is not json"),
        fake_client(json.dumps({"milestones": []})),
        fake_client(json.dumps({"milestones": [{"description": "no title"}]})),
    ],
    ids=["outage", "not-json", "empty", "malformed"],
)
def test_milestones_fall_back_on_any_failure(client):
    response = RoadmapGenerator(client=client).generate_milestones("Learn Spanish", GoalTimeline.ONE_YEAR)

    assert response.source == "fallback"
    assert [m.title for m in response.milestones][:2] == ["Set Up Learning Foundation", "Build Core Vocabulary"]
    assert len(response.milestones) == 6
    assert all(m.actions for m in response.milestones)


def test_custom_timeline_uses_its_value_for_fallback():
    response = RoadmapGenerator().generate_milestones("Learn Spanish", GoalTimeline.CUSTOM, timeline_value=7)
    assert [m.target_period.ordinal for m in response.milestones] == [1, 1, 3, 6]
