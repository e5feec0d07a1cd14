import json

import httpx
import pytest
from openai import OpenAI

from murmur.services.cleanup_engine import SYSTEM_PROMPT, CleanupEngine, CleanupError, strip_artifacts
from murmur.settings import PipelineSettings


def _completion(content, choices=True):
    body = {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 0,
        "model": "test-model",
        "choices": [],
    }
    if choices:
        body["choices"] = [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ]
    return body


def _engine(handler):
    client = OpenAI(
        api_key="test-key",
        base_url="http://llm.test/v1",
        max_retries=0,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    return CleanupEngine(PipelineSettings(cleanup_model="test-model"), client=client)


def test_cleanup_sends_prompt_and_sampling_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("Hello there, how are you?"))

    engine = _engine(handler)
    assert engine.cleanup("hello there how are you") == "Hello there, how are you?"
    engine.close()

    body = seen["body"]
    assert seen["path"].endswith("/chat/completions")
    assert body["model"] == "test-model"
    assert body["temperature"] == pytest.approx(0.1)
    assert body["top_p"] == pytest.approx(0.9)
    assert body["messages"] == [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "hello there how are you"},
    ]


def test_cleanup_strips_reasoning_and_continuations():
    content = "<think>the user wants punctuation</think>\nSee you at noon.\nInput: more text"
    engine = _engine(lambda request: httpx.Response(200, json=_completion(content)))
    assert engine.cleanup("see you at noon") == "See you at noon."


def test_server_error_raises_cleanup_error():
    engine = _engine(lambda request: httpx.Response(500, json={"error": {"message": "boom"}}))
    with pytest.raises(CleanupError):
        engine.cleanup("hello there how are you")


def test_missing_choices_raise_cleanup_error():
    engine = _engine(lambda request: httpx.Response(200, json=_completion("", choices=False)))
    with pytest.raises(CleanupError):
        engine.cleanup("hello there how are you")


def test_blank_answer_raises_cleanup_error():
    engine = _engine(lambda request: httpx.Response(200, json=_completion("<think>hmm</think>  ")))
    with pytest.raises(CleanupError):
        engine.cleanup("hello there how are you")


def test_strip_artifacts_cuts_at_first_marker():
    assert strip_artifacts("Done.<|user|>next turn") == "Done."
    assert strip_artifacts("Fine. Example: foo Input: bar") == "Fine."
    assert strip_artifacts("  plain text  ") == "plain text"
