import pytest

from mockinterview.interview import (
    ConversationAdapter, AssessmentAdapter, InterviewEventBus, InterviewSession,
    PromotionTestController, Tier,
)
from mockinterview.interview.testing import (
    MockConversationalService, MockStructuredService, create_sample_parameters,
)


class EventRecorder:
    """Global event subscriber that keeps everything it sees."""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def of_type(self, event_type):
        return [e for e in self.events if e.event_type == event_type]


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def event_bus(recorder):
    bus = InterviewEventBus()
    bus.subscribe_all(recorder)
    return bus


@pytest.fixture
def params():
    return create_sample_parameters()


@pytest.fixture
def service():
    return MockConversationalService()


@pytest.fixture
def session(service, event_bus):
    return InterviewSession(ConversationAdapter(service), event_bus)


@pytest.fixture
def started_session(session, params):
    assert session.start(params, "en", Tier.BEGINNER)
    return session


@pytest.fixture
def structured_service():
    return MockStructuredService()


@pytest.fixture
def controller(structured_service, event_bus):
    return PromotionTestController(AssessmentAdapter(structured_service), event_bus)
