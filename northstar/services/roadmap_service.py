"""LLM-backed roadmap generation with a deterministic fallback.

The generator never hard-fails the user flow: any problem talking to the
model (missing key, rate limit, outage, unparsable answer) is turned into
``DependencyUnavailable`` internally and answered from the fallback rule
tables instead.
"""
import json
import logging
import re
from typing import Any, List, Optional

import openai
from pydantic import ValidationError as PydanticValidationError

from northstar.core import config
from northstar.core.exceptions import DependencyUnavailable
from northstar.models.goals import GoalTimeline, PeriodUnit, TIMELINE_MONTHS
from northstar.schemas.roadmap import (
    GeneratedMilestone,
    QuestionAnswer,
    QuestionsResponse,
    RoadmapResponse,
)
from northstar.services import fallback_templates

roadmap_logger = logging.getLogger("roadmap_service")

TIMEFRAME_PATTERN = re.compile(r"^\s*(week|month)\s+(\d+)\s*$", re.IGNORECASE)

QUESTIONS_PROMPT = """Generate exactly 5 simple, easy-to-answer questions for someone working on: "{goal_title}" in {timeframe}.

Make questions conversational and specific. Focus on:
1. Where they are now (current state)
2. What time they have available
3. What they prefer or enjoy
4. What has worked/not worked before
5. What success looks like to them

Keep questions under 15 words each. Make them feel like a friendly conversation, not an interview.

Return only a JSON object with a "questions" array containing exactly 5 simple question strings."""

ROADMAP_PROMPT = """Create a specific, actionable roadmap for the goal: "{goal_title}" to be achieved in {timeframe}.

User context:
{qa_text}

Generate progressive milestones, each placed on the timeline with a timeframe label.
Use "Week N" labels for a one-month plan and "Month N" labels otherwise (the first milestone may be "Week 1").

Each milestone needs:
- Specific title describing what they'll achieve
- timeframe: e.g. "Week 1", "Month 3"
- 3-5 concrete actions with specific, measurable steps
- optional resources per action: {{"name": "...", "url": "...", "type": "article|video|course|tool"}}

Return JSON: {{"milestones": [{{"title": "...", "timeframe": "Week 1", "actions": [{{"title": "...", "resources": []}}]}}]}}

Make every action specific to {goal_title} with clear, achievable steps."""


def timeline_months(timeline: GoalTimeline, timeline_value: Optional[int] = None) -> int:
    if timeline == GoalTimeline.CUSTOM:
        return timeline_value or 12
    return TIMELINE_MONTHS[timeline]


def timeline_text(timeline: GoalTimeline, timeline_value: Optional[int] = None) -> str:
    if timeline == GoalTimeline.CUSTOM:
        months = timeline_value or 12
        return f"{months} month" if months == 1 else f"{months} months"
    return timeline.value.replace("_", " ")


def parse_timeframe(label: Optional[str]) -> Optional[dict]:
    """'Week 1' -> {unit: week, ordinal: 1}; anything else -> None"""
    if not label:
        return None
    match = TIMEFRAME_PATTERN.match(label)
    if not match:
        return None
    ordinal = int(match.group(2))
    if ordinal < 1:
        return None
    return {"unit": PeriodUnit(match.group(1).lower()), "ordinal": ordinal}


class RoadmapGenerator:
    def __init__(self, client: Any = None, model: Optional[str] = None):
        self._client = client
        self.model = model or config.OPENAI_MODEL

    @property
    def client(self):
        if self._client is None:
            if not config.OPENAI_API_KEY:
                raise DependencyUnavailable("OpenAI API key not configured")
            self._client = openai.OpenAI(api_key=config.OPENAI_API_KEY, timeout=config.OPENAI_TIMEOUT_SECONDS)
        return self._client

    def _complete_json(self, prompt: str) -> dict:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
                temperature=0.7,
            )
            return json.loads(response.choices[0].message.content or "{}")
        except openai.RateLimitError as e:
            raise DependencyUnavailable(f"Roadmap generator rate limited: {e}")
        except openai.OpenAIError as e:
            raise DependencyUnavailable(f"Roadmap generator failed: {e}")
        except (json.JSONDecodeError, IndexError, AttributeError, TypeError) as e:
            raise DependencyUnavailable(f"Roadmap generator returned an unusable answer: {e}")

    def generate_questions(self, goal_title: str, timeline: GoalTimeline) -> QuestionsResponse:
        timeframe = timeline_text(timeline)
        try:
            result = self._complete_json(QUESTIONS_PROMPT.format(goal_title=goal_title, timeframe=timeframe))
            questions = [str(q).strip() for q in result.get("questions", []) if str(q).strip()]
            if not questions:
                raise DependencyUnavailable("Roadmap generator returned no questions")
            return QuestionsResponse(questions=questions, source="ai")
        except DependencyUnavailable as e:
            roadmap_logger.warning(f"⚠️ Using fallback questions for '{goal_title}': {e.message}")
            return QuestionsResponse(
                questions=fallback_templates.fallback_questions(goal_title, timeframe),
                source="fallback",
            )

    def generate_milestones(
        self,
        goal_title: str,
        timeline: GoalTimeline,
        questions_and_answers: Optional[List[QuestionAnswer]] = None,
        timeline_value: Optional[int] = None,
    ) -> RoadmapResponse:
        qa_text = "\n\n".join(f"Q: {qa.question}\nA: {qa.answer}" for qa in questions_and_answers or [])
        prompt = ROADMAP_PROMPT.format(
            goal_title=goal_title,
            timeframe=timeline_text(timeline, timeline_value),
            qa_text=qa_text or "(none provided)",
        )
        try:
            result = self._complete_json(prompt)
            milestones = self._parse_milestones(result)
            return RoadmapResponse(milestones=milestones, source="ai")
        except DependencyUnavailable as e:
            roadmap_logger.warning(f"⚠️ Using fallback roadmap for '{goal_title}': {e.message}")
            months = timeline_months(timeline, timeline_value)
            milestones = [
                GeneratedMilestone.model_validate(m)
                for m in fallback_templates.fallback_milestones(goal_title, months)
            ]
            return RoadmapResponse(milestones=milestones, source="fallback")

    def _parse_milestones(self, result: dict) -> List[GeneratedMilestone]:
        raw = result.get("milestones") if isinstance(result, dict) else None
        if not raw:
            raise DependencyUnavailable("Roadmap generator returned no milestones")
        milestones = []
        try:
            for item in raw:
                milestones.append(
                    GeneratedMilestone(
                        title=item["title"],
                        description=item.get("description"),
                        target_period=parse_timeframe(item.get("timeframe")),
                        actions=[
                            {
                                "title": action["title"],
                                "description": action.get("description"),
                                "resources": action.get("resources") or [],
                            }
                            for action in item.get("actions", [])
                        ],
                    )
                )
        except (KeyError, TypeError, AttributeError, PydanticValidationError) as e:
            raise DependencyUnavailable(f"Roadmap generator returned malformed milestones: {e}")
        return milestones
