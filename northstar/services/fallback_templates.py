"""Deterministic roadmap content used when the LLM is unavailable.

Each table is an ordered list of rules; the first rule whose keywords
appear in the lowercased goal title wins, and the final catch-all rule
always matches. Adding a category means appending a rule, not editing
control flow.
"""
from dataclasses import dataclass, field
from typing import Callable, List, Tuple

from northstar.models.goals import PeriodUnit


def mentions(*keywords: str) -> Callable[[str], bool]:
    def predicate(goal_text: str) -> bool:
        return any(keyword in goal_text for keyword in keywords)
    return predicate


def always(goal_text: str) -> bool:
    return True


FITNESS = mentions("shape", "fit", "health", "weight", "exercise")
LEARNING = mentions("learn", "study", "skill", "language")
CAREER = mentions("career", "job", "business", "work", "promotion")
FINANCIAL = mentions("money", "save", "debt", "financial", "income")


@dataclass(frozen=True)
class MilestoneTemplate:
    title: str
    unit: PeriodUnit
    ordinal: int
    actions: Tuple[str, ...]
    min_months: int = 0  # only offered when the goal's timeline is at least this long


@dataclass(frozen=True)
class RoadmapRule:
    name: str
    matches: Callable[[str], bool]
    milestones: Tuple[MilestoneTemplate, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class QuestionRule:
    name: str
    matches: Callable[[str], bool]
    questions: Tuple[str, ...]  # may use {goal_title} and {timeframe}


ROADMAP_RULES: List[RoadmapRule] = [
    RoadmapRule(
        "fitness",
        FITNESS,
        (
            MilestoneTemplate("Get Started This Week", PeriodUnit.WEEK, 1, (
                "Schedule 3 workout days this week",
                "Take baseline measurements and photos",
                "Download a fitness tracking app",
                "Clear out junk food from kitchen",
            )),
            MilestoneTemplate("Build Your Foundation", PeriodUnit.MONTH, 1, (
                "Complete 4 weeks of consistent workouts",
                "Establish healthy eating routine",
                "Find workout buddy or join fitness community",
                "Track progress and adjust plan as needed",
            )),
            MilestoneTemplate("Level Up Your Fitness", PeriodUnit.MONTH, 3, (
                "Increase workout intensity and duration",
                "Try new types of exercise for variety",
                "See noticeable improvements in strength/endurance",
                "Refine nutrition plan based on results",
            ), min_months=3),
            MilestoneTemplate("Hit Your Stride", PeriodUnit.MONTH, 6, (
                "Achieve significant fitness improvements",
                "Set new challenging but achievable goals",
                "Help or inspire someone else to get started",
                "Plan active vacation or fitness event",
            ), min_months=6),
            MilestoneTemplate("Master Your Fitness Journey", PeriodUnit.MONTH, 12, (
                "Achieve original fitness goals",
                "Develop sustainable long-term habits",
                "Set ambitious new fitness challenges",
                "Share your transformation story",
            ), min_months=12),
        ),
    ),
    RoadmapRule(
        "learning",
        LEARNING,
        (
            MilestoneTemplate("Set Up Learning Foundation", PeriodUnit.WEEK, 1, (
                "Choose primary learning resource (app, course, or textbook)",
                "Set up daily 15-30 minute study schedule",
                "Learn basic greetings and essential phrases",
                "Download language learning apps and create accounts",
            )),
            MilestoneTemplate("Build Core Vocabulary", PeriodUnit.MONTH, 1, (
                "Master 100-150 essential words",
                "Complete beginner grammar lessons",
                "Practice pronunciation daily",
                "Start simple sentence construction",
            )),
            MilestoneTemplate("Begin Conversational Practice", PeriodUnit.MONTH, 3, (
                "Expand vocabulary to 500+ words",
                "Practice speaking with language exchange partner",
                "Listen to simple audio content daily",
                "Write short paragraphs about daily activities",
            )),
            MilestoneTemplate("Intermediate Proficiency", PeriodUnit.MONTH, 6, (
                "Hold 10-minute conversations on familiar topics",
                "Read simple articles or children's books",
                "Know 1000+ vocabulary words",
                "Use past and future tenses confidently",
            ), min_months=6),
            MilestoneTemplate("Advanced Application", PeriodUnit.MONTH, 9, (
                "Watch movies or shows with subtitles",
                "Participate in online forums or communities",
                "Express opinions and discuss complex topics",
                "Start reading intermediate level books",
            ), min_months=9),
            MilestoneTemplate("Near-Fluency Achievement", PeriodUnit.MONTH, 12, (
                "Conduct business or academic conversations",
                "Write essays or formal documents",
                "Understand native speakers at normal speed",
                "Plan trip to country where language is spoken",
            ), min_months=12),
        ),
    ),
    RoadmapRule(
        "general",
        always,
        (
            MilestoneTemplate("Get Started", PeriodUnit.WEEK, 1, (
                "Set up initial plan and resources",
                "Take first concrete steps",
                "Establish routine or schedule",
            )),
        ),
    ),
]


QUESTION_RULES: List[QuestionRule] = [
    QuestionRule("fitness", FITNESS, (
        "What is your current fitness level and how often do you currently exercise?",
        "What time of day works best for you to work out, and how much time can you realistically commit each week?",
        "Do you prefer working out at home, at a gym, or outdoors? What equipment or resources do you have access to?",
        "Have you tried fitness programs before? What worked well and what challenges did you face?",
        "What specific aspect of getting in shape motivates you most - strength, endurance, weight loss, or feeling more confident?",
    )),
    QuestionRule("learning", LEARNING, (
        "What is your current experience level with this subject, and why do you want to learn it?",
        "How much time can you dedicate to learning each day or week given your current schedule?",
        "Do you learn better through reading, watching videos, hands-on practice, or working with others?",
        "What resources do you currently have access to (books, courses, mentors, software)?",
        "What would success look like to you at the end of your {timeframe} timeline?",
    )),
    QuestionRule("career", CAREER, (
        "What is your current situation and what specific career change or advancement are you seeking?",
        "What skills, connections, or qualifications do you currently have that support this goal?",
        "How much time can you dedicate to career development activities outside of your current responsibilities?",
        "What obstacles or challenges do you anticipate, and what support system do you have?",
        "What would achieving this goal mean for your life and how will you measure success?",
    )),
    QuestionRule("financial", FINANCIAL, (
        "What is your current financial situation and what specific financial goal are you working toward?",
        "How much money can you realistically set aside each month toward this goal?",
        "What are your main expenses and where do you see potential opportunities to optimize your budget?",
        "Have you tried saving or budgeting strategies before? What worked and what didn't?",
        "What would achieving this financial goal enable you to do that you can't do now?",
    )),
    QuestionRule("general", always, (
        'What is your current situation regarding "{goal_title}" and what specifically do you want to achieve?',
        "What resources, skills, or support do you currently have that will help you reach this goal?",
        "How much time can you realistically dedicate to working on this goal each week?",
        "What challenges or obstacles do you anticipate, and how have you handled similar challenges before?",
        "What will success look like to you, and how will you know when you've achieved your goal?",
    )),
]


def match_roadmap_rule(goal_title: str) -> RoadmapRule:
    text = goal_title.lower()
    return next(rule for rule in ROADMAP_RULES if rule.matches(text))


def match_question_rule(goal_title: str) -> QuestionRule:
    text = goal_title.lower()
    return next(rule for rule in QUESTION_RULES if rule.matches(text))


def fallback_questions(goal_title: str, timeframe: str) -> List[str]:
    rule = match_question_rule(goal_title)
    return [q.format(goal_title=goal_title, timeframe=timeframe) for q in rule.questions]


def fallback_milestones(goal_title: str, timeline_months: int) -> List[dict]:
    rule = match_roadmap_rule(goal_title)
    return [
        {
            "title": template.title,
            "target_period": {"unit": template.unit, "ordinal": template.ordinal},
            "actions": [{"title": title} for title in template.actions],
        }
        for template in rule.milestones
        if timeline_months >= template.min_months
    ]
