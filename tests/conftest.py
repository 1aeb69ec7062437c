import os

# Must be set before northstar modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EVENTS_ENABLED"] = "false"
os.environ.pop("OPENAI_API_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from northstar.database import Base, SessionLocal, engine  # noqa: E402
from northstar.main import app  # noqa: E402
from northstar.models.goals import Action, Goal, GoalTimeline, Milestone, PeriodUnit  # noqa: E402


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app, headers={"X-User-ID": "user-1"})


@pytest.fixture
def published(monkeypatch):
    """Capture domain events instead of talking to Kafka."""
    from northstar.events import kafka_producer

    events = []

    def fake_publish(topic, key, payload):
        events.append((topic, key, payload))
        return True

    monkeypatch.setattr(kafka_producer, "publish_event", fake_publish)
    return events


@pytest.fixture
def make_goal(db):
    """Build a goal tree directly in the database."""

    def _make(user_id="user-1", title="Learn Spanish", milestones=3, actions_per_milestone=2,
              timeline=GoalTimeline.ONE_YEAR):
        goal = Goal(user_id=user_id, title=title, description="", timeline=timeline)
        for m in range(milestones):
            milestone = Milestone(
                title=f"Milestone {m + 1}",
                order_index=m,
                target_unit=PeriodUnit.MONTH,
                target_ordinal=m + 1,
            )
            milestone.actions = [
                Action(title=f"Action {m + 1}.{a + 1}", order_index=a, resources=[])
                for a in range(actions_per_milestone)
            ]
            goal.milestones.append(milestone)
        db.add(goal)
        db.commit()
        db.refresh(goal)
        return goal

    return _make
