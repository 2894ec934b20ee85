"""
Unit tests for content source payload handling and clients.
"""

import json
from types import SimpleNamespace

import httpx
import pytest

from config import Settings
from smartpath.content import gemini_source
from smartpath.content.factory import create_content_source
from smartpath.content.gemini_source import GeminiContentSource
from smartpath.content.http_source import HttpContentSource
from smartpath.content.source import (
    load_json,
    parse_explanation,
    parse_plan,
    parse_questions,
)
from smartpath.core.exceptions import ConfigurationError, GenerationError


@pytest.fixture
def question_payload():
    return [
        {
            "text": "TCP 属于哪一层?",
            "options": ["应用层", "传输层", "网络层", "链路层"],
            "correctIndex": 1,
            "explanation": "TCP 是传输层协议。",
            "topicSubCategory": "协议栈",
        }
    ]


@pytest.fixture
def plan_payload():
    return [
        {"day": 2, "topic": "路由", "focus": "IP 转发", "activities": ["阅读"]},
        {"day": 1, "topic": "分层", "focus": "OSI 模型", "activities": ["阅读", "测验"]},
    ]


class TestPayloadParsing:
    def test_load_json_strips_code_fence(self):
        raw = '```json\n[{"a": 1}]\n```'
        assert load_json(raw, "generate_questions") == [{"a": 1}]

    def test_load_json_keeps_code_blocks_inside_values(self):
        markdown = "# Loops\n\n```python\nfor i in range(3):\n    print(i)\n```"
        raw = "```json\n" + json.dumps({"markdown": markdown}) + "\n```"

        assert load_json(raw, "generate_material") == {"markdown": markdown}

    def test_load_json_rejects_empty(self):
        with pytest.raises(GenerationError) as exc_info:
            load_json("  ", "generate_plan")
        assert exc_info.value.operation == "generate_plan"

    def test_load_json_rejects_garbage(self):
        with pytest.raises(GenerationError):
            load_json("not json", "generate_questions")

    def test_parse_questions(self, question_payload):
        questions = parse_questions(question_payload)

        assert len(questions) == 1
        assert questions[0].correct_index == 1
        assert questions[0].sub_topic == "协议栈"
        assert questions[0].options[1] == "传输层"
        assert questions[0].is_fallback is False

    def test_parse_questions_unwraps_object(self, question_payload):
        assert len(parse_questions({"questions": question_payload})) == 1

    def test_correct_index_out_of_range_rejected(self, question_payload):
        question_payload[0]["correctIndex"] = 4
        with pytest.raises(GenerationError):
            parse_questions(question_payload)

    def test_empty_question_list_rejected(self):
        with pytest.raises(GenerationError):
            parse_questions([])

    def test_parse_plan_sorted_by_day(self, plan_payload):
        days = parse_plan({"days": plan_payload})

        assert [d.day for d in days] == [1, 2]
        assert days[0].activities == ["阅读", "测验"]

    def test_parse_plan_rejects_repeated_day_numbers(self):
        payload = [
            {"day": 1, "topic": "分层"},
            {"day": 1, "topic": "分层复习"},
            {"day": 2, "topic": "路由"},
        ]

        with pytest.raises(GenerationError) as exc_info:
            parse_plan(payload)
        assert exc_info.value.operation == "generate_plan"

    def test_parse_plan_rejects_missing_topic(self):
        with pytest.raises(GenerationError):
            parse_plan([{"day": 1}])

    def test_parse_explanation_accepts_plain_string(self):
        assert parse_explanation("导数描述变化率。") == "导数描述变化率。"


class TestHttpContentSource:
    @pytest.mark.asyncio
    async def test_question_request_payload(self, question_payload):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=question_payload)

        source = HttpContentSource("http://content.test/api/", transport=httpx.MockTransport(handler))
        questions = await source.generate_questions("网络", 55, ["q1"], 5, material="# 资料")
        await source.close()

        assert seen["path"] == "/api/questions"
        assert seen["body"] == {
            "topic": "网络",
            "level": 55,
            "recentTexts": ["q1"],
            "count": 5,
            "material": "# 资料",
        }
        assert questions[0].text == "TCP 属于哪一层?"

    @pytest.mark.asyncio
    async def test_material_and_explain_payloads(self):
        bodies = {}

        def handler(request: httpx.Request) -> httpx.Response:
            bodies[request.url.path] = json.loads(request.content)
            if request.url.path == "/material":
                return httpx.Response(200, json={"markdown": "# 分层"})
            return httpx.Response(200, json={"explanation": "解释"})

        source = HttpContentSource("http://content.test", transport=httpx.MockTransport(handler))
        material = await source.generate_material("网络", "分层", "OSI 模型", 50)
        explanation = await source.explain_selection("传输层", "网络")
        await source.close()

        assert material.markdown == "# 分层"
        assert explanation == "解释"
        assert bodies["/material"] == {"topic": "网络", "subTopic": "分层", "focus": "OSI 模型", "level": 50}
        assert bodies["/explain"] == {"selectedText": "传输层", "contextTopic": "网络"}

    @pytest.mark.asyncio
    async def test_server_error_raises_generation_error(self):
        source = HttpContentSource(
            "http://content.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom")),
        )

        with pytest.raises(GenerationError) as exc_info:
            await source.generate_plan("网络", 50)
        await source.close()

        assert exc_info.value.operation == "generate_plan"

    @pytest.mark.asyncio
    async def test_connection_error_raises_generation_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        source = HttpContentSource("http://content.test", transport=httpx.MockTransport(handler))

        with pytest.raises(GenerationError):
            await source.generate_questions("网络", 50, [], 5)
        await source.close()

    @pytest.mark.asyncio
    async def test_non_json_body_raises_generation_error(self):
        source = HttpContentSource(
            "http://content.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>")),
        )

        with pytest.raises(GenerationError):
            await source.generate_material("网络", "分层", "OSI", 50)
        await source.close()

    def test_missing_url_rejected(self):
        with pytest.raises(ConfigurationError):
            HttpContentSource(None)


class FakeGenerativeModel:
    """Stands in for genai.GenerativeModel."""

    instances: list = []
    response_text = "[]"
    error: Exception | None = None

    def __init__(self, model_name, system_instruction=None):
        self.model_name = model_name
        self.system_instruction = system_instruction
        self.calls = []
        FakeGenerativeModel.instances.append(self)

    async def generate_content_async(self, prompt, generation_config=None):
        self.calls.append({"prompt": prompt, "generation_config": generation_config})
        if FakeGenerativeModel.error is not None:
            raise FakeGenerativeModel.error
        return SimpleNamespace(text=FakeGenerativeModel.response_text)


@pytest.fixture
def fake_genai(monkeypatch):
    FakeGenerativeModel.instances = []
    FakeGenerativeModel.response_text = "[]"
    FakeGenerativeModel.error = None
    monkeypatch.setattr(gemini_source.genai, "configure", lambda **kwargs: None)
    monkeypatch.setattr(gemini_source.genai, "GenerativeModel", FakeGenerativeModel)
    return FakeGenerativeModel


class TestGeminiContentSource:
    @pytest.mark.asyncio
    async def test_generate_questions(self, fake_genai, question_payload):
        fake_genai.response_text = "```json\n" + json.dumps(question_payload) + "\n```"
        source = GeminiContentSource("key", model_name="gemini-test")

        questions = await source.generate_questions("网络", 72, ["旧问题"], 5, material="# 资料")

        model = fake_genai.instances[0]
        assert model.model_name == "gemini-test"
        assert "72/100" in model.system_instruction
        assert "旧问题" in model.system_instruction
        assert "COMPREHENSION MODE" in model.system_instruction
        assert model.calls[0]["generation_config"] == {"response_mime_type": "application/json"}
        assert questions[0].correct_index == 1

    @pytest.mark.asyncio
    async def test_generate_plan(self, fake_genai, plan_payload):
        fake_genai.response_text = json.dumps(plan_payload)
        source = GeminiContentSource("key", plan_days=2)

        days = await source.generate_plan("网络", 50)

        assert [d.day for d in days] == [1, 2]
        assert "2-day" in fake_genai.instances[0].system_instruction

    @pytest.mark.asyncio
    async def test_api_failure_raises_generation_error(self, fake_genai):
        fake_genai.error = RuntimeError("quota exceeded")
        source = GeminiContentSource("key")

        with pytest.raises(GenerationError) as exc_info:
            await source.explain_selection("传输层", "网络")

        assert exc_info.value.operation == "explain_selection"
        assert isinstance(exc_info.value.cause, RuntimeError)

    @pytest.mark.asyncio
    async def test_malformed_response_raises_generation_error(self, fake_genai):
        fake_genai.response_text = '{"markdown": ""}'
        source = GeminiContentSource("key")

        with pytest.raises(GenerationError):
            await source.generate_material("网络", "分层", "OSI", 50)

    def test_missing_key_rejected(self, fake_genai):
        with pytest.raises(ConfigurationError):
            GeminiContentSource(None)


class TestFactory:
    def test_http_backend(self):
        settings = Settings(content_backend="http", content_api_url="http://content.test")

        assert isinstance(create_content_source(settings), HttpContentSource)

    def test_gemini_backend(self, fake_genai):
        settings = Settings(content_backend="gemini", gemini_api_key="key", plan_length_days=7)

        source = create_content_source(settings)

        assert isinstance(source, GeminiContentSource)
        assert source.plan_days == 7

    def test_missing_configuration(self):
        settings = Settings(content_backend="http", content_api_url=None)

        assert settings.has_ai_configured() is False
        with pytest.raises(ConfigurationError):
            create_content_source(settings)
