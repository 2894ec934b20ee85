"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import asyncio
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from smartpath.content.models import PlanDay, Question, StudyMaterial  # noqa: E402
from smartpath.core.exceptions import GenerationError  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


def make_question(text: str, correct_index: int = 0, sub_topic: str = "basics") -> Question:
    return Question(
        text=text,
        options=("A", "B", "C", "D"),
        correct_index=correct_index,
        explanation=f"Because {text}",
        sub_topic=sub_topic,
    )


class FakeContentSource:
    """
    Scripted content source.

    Question fetches wait on the event returned by ``hold()`` (captured at
    call time) so tests control when a fetch completes.
    """

    def __init__(self, plan_days: int = 5):
        self.question_calls: list[dict] = []
        self.material_calls: list[dict] = []
        self.explain_calls: list[dict] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.fail_questions = 0
        self.fail_plan = False
        self.empty_plan = False
        self.fail_material = False
        self.fail_explain = False
        self.plan_days = plan_days
        self._gate: asyncio.Event | None = None
        self._counter = 0

    def hold(self) -> asyncio.Event:
        self._gate = asyncio.Event()
        return self._gate

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()
        self._gate = None

    async def generate_questions(self, topic, level, recent_texts, count, material=None):
        self.question_calls.append(
            {
                "topic": topic,
                "level": level,
                "recent_texts": list(recent_texts),
                "count": count,
                "material": material,
            }
        )
        gate = self._gate
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if gate is not None:
                await gate.wait()
            else:
                await asyncio.sleep(0)
            if self.fail_questions > 0:
                self.fail_questions -= 1
                raise GenerationError("backend unavailable", operation="generate_questions")
            batch = []
            for _ in range(count):
                self._counter += 1
                batch.append(make_question(f"{topic} question {self._counter}"))
            return batch
        finally:
            self.in_flight -= 1

    async def generate_plan(self, topic, level):
        if self.fail_plan:
            raise GenerationError("plan failed", operation="generate_plan")
        if self.empty_plan:
            return []
        return [
            PlanDay(day=n, topic=f"{topic} part {n}", focus=f"focus {n}", activities=["read", "quiz"])
            for n in range(self.plan_days, 0, -1)
        ]

    async def generate_material(self, topic, sub_topic, focus, level):
        self.material_calls.append({"topic": topic, "sub_topic": sub_topic, "focus": focus, "level": level})
        if self.fail_material:
            raise GenerationError("material failed", operation="generate_material")
        return StudyMaterial(markdown=f"# {sub_topic}\n\n{focus}")

    async def explain_selection(self, selected_text, context_topic):
        self.explain_calls.append({"selected_text": selected_text, "context_topic": context_topic})
        if self.fail_explain:
            raise GenerationError("explain failed", operation="explain_selection")
        return f"explanation of {selected_text}"


@pytest.fixture
def fake_source():
    """Provide a scripted content source."""
    return FakeContentSource()


@pytest.fixture
def sample_question():
    """Provide a sample question for testing."""
    return make_question("What does the OSI network layer handle?", correct_index=2, sub_topic="OSI")


@pytest.fixture
def question_factory():
    """Provide the question builder used by the fake source."""
    return make_question
