import asyncio
import base64
from types import SimpleNamespace

import orjson
import pytest
from google.genai import errors as genai_errors

from lexstudio.core.config import Settings
from lexstudio.core.errors import (
    EmptyResponseError,
    GenerationBlockedError,
    NoCandidateError,
    NoContentError,
    NoImageError,
    ResponseParseError,
    ServiceError,
)
from lexstudio.llm import (
    GeminiClient,
    InlinePart,
    StaticGenerationClient,
    check_text_response,
    decode_data_uri,
    extract_image_data_uri,
    parse_structured_response,
    to_data_uri,
)
from lexstudio.posts.schema import PostContent

POST_JSON = orjson.dumps(
    {
        "title": "Horas extras",
        "subtitle": "Seus direitos na CLT",
        "copy": "Texto do post.",
        "hashtags": ["#clt"],
        "seoKeywords": ["horas extras"],
    }
).decode()


def _response(text=None, finish_reason="STOP", parts=None, candidates=True):
    if not candidates:
        return SimpleNamespace(text=text, candidates=[])
    content = SimpleNamespace(parts=parts) if parts is not None else None
    candidate = SimpleNamespace(
        finish_reason=SimpleNamespace(name=finish_reason) if finish_reason else None,
        content=content,
    )
    return SimpleNamespace(text=text, candidates=[candidate])


def test_structured_response_parses_into_model():
    content = parse_structured_response(_response(text=POST_JSON), PostContent)
    assert content.title == "Horas extras"
    assert content.copy_text == "Texto do post."
    assert content.seo_keywords == ["horas extras"]


def test_structured_empty_body_with_abnormal_reason_is_blocked():
    with pytest.raises(GenerationBlockedError) as exc:
        parse_structured_response(_response(text=None, finish_reason="SAFETY"), PostContent)
    assert exc.value.reason == "SAFETY"
    assert "SAFETY" in str(exc.value)


def test_structured_empty_body_with_normal_stop():
    with pytest.raises(EmptyResponseError):
        parse_structured_response(_response(text=""), PostContent)


def test_structured_rejects_invalid_json_and_schema_mismatch():
    with pytest.raises(ResponseParseError):
        parse_structured_response(_response(text="{not json"), PostContent)
    with pytest.raises(ResponseParseError):
        parse_structured_response(_response(text='{"title": "Só título"}'), PostContent)


@pytest.mark.parametrize("field", ["hashtags", "seoKeywords"])
def test_structured_rejects_empty_lists(field):
    payload = orjson.loads(POST_JSON)
    payload[field] = []
    with pytest.raises(ResponseParseError):
        parse_structured_response(_response(text=orjson.dumps(payload).decode()), PostContent)


def test_long_text_checks_finish_reason():
    assert check_text_response(_response(text="Petição")) == "Petição"
    with pytest.raises(GenerationBlockedError):
        check_text_response(_response(text="parcial", finish_reason="MAX_TOKENS"))
    with pytest.raises(EmptyResponseError):
        check_text_response(_response(text=None))


def test_image_extraction_failures():
    with pytest.raises(NoCandidateError):
        extract_image_data_uri(_response(candidates=False))
    with pytest.raises(GenerationBlockedError):
        extract_image_data_uri(_response(finish_reason="PROHIBITED_CONTENT", parts=[]))
    with pytest.raises(NoContentError):
        extract_image_data_uri(_response(parts=None))
    with pytest.raises(NoImageError):
        extract_image_data_uri(_response(parts=[SimpleNamespace(inline_data=None, text="sem imagem")]))


def test_image_extraction_returns_data_uri():
    inline = SimpleNamespace(mime_type="image/jpeg", data=b"\xff\xd8\xff")
    uri = extract_image_data_uri(_response(parts=[SimpleNamespace(inline_data=None), SimpleNamespace(inline_data=inline)]))
    assert uri == "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xff").decode()
    assert decode_data_uri(uri) == ("image/jpeg", b"\xff\xd8\xff")


def test_data_uri_helpers():
    assert to_data_uri("image/png", "QUJD") == "data:image/png;base64,QUJD"
    with pytest.raises(ValueError):
        decode_data_uri("https://example.com/a.png")


class FakeModels:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    async def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.exc is not None:
            raise self.exc
        return self.response


def _gemini(models: FakeModels) -> GeminiClient:
    return GeminiClient(Settings(api_key="test-key"), client=SimpleNamespace(aio=SimpleNamespace(models=models)))


def test_gemini_long_text_uses_reasoning_model_and_inline_parts():
    models = FakeModels(response=_response(text="Petição gerada"))
    client = _gemini(models)
    text = asyncio.run(client.generate_long_text("prompt", [InlinePart("application/pdf", b"%PDF")]))
    assert text == "Petição gerada"
    call = models.calls[0]
    assert call["model"] == "gemini-2.5-pro"
    assert call["config"].thinking_config.thinking_budget == 32768
    assert len(call["contents"][0].parts) == 2


def test_gemini_structured_requests_json():
    models = FakeModels(response=_response(text=POST_JSON))
    content = asyncio.run(_gemini(models).generate_structured_text("tema", PostContent))
    assert content.subtitle == "Seus direitos na CLT"
    call = models.calls[0]
    assert call["model"] == "gemini-2.5-flash"
    assert call["config"].response_mime_type == "application/json"


def test_gemini_image_requests_image_modality():
    inline = SimpleNamespace(mime_type="image/png", data=b"png")
    models = FakeModels(response=_response(parts=[SimpleNamespace(inline_data=inline)]))
    uri = asyncio.run(_gemini(models).generate_image("imagem"))
    assert uri.startswith("data:image/png;base64,")
    call = models.calls[0]
    assert call["model"] == "gemini-2.5-flash-image"
    assert list(call["config"].response_modalities) == ["IMAGE"]


def test_gemini_api_errors_become_service_errors():
    api_error = genai_errors.ClientError(
        400, {"error": {"code": 400, "message": "Unsupported MIME type: application/zip", "status": "INVALID_ARGUMENT"}}
    )
    with pytest.raises(ServiceError) as exc:
        asyncio.run(_gemini(FakeModels(exc=api_error)).generate_long_text("prompt"))
    assert exc.value.status == 400
    assert "Unsupported MIME type" in str(exc.value)


def test_gemini_transport_failures_become_service_errors():
    with pytest.raises(ServiceError) as exc:
        asyncio.run(_gemini(FakeModels(exc=ConnectionError("Server disconnected"))).generate_long_text("prompt"))
    assert exc.value.status is None
    assert "Server disconnected" in str(exc.value)
    assert isinstance(exc.value.__cause__, ConnectionError)


def test_static_client_records_calls_and_scripted_failures():
    client = StaticGenerationClient(structured=POST_JSON, images=[NoImageError()])
    content = asyncio.run(client.generate_structured_text("tema", PostContent))
    assert content.title == "Horas extras"
    with pytest.raises(NoImageError):
        asyncio.run(client.generate_image("a"))
    assert asyncio.run(client.generate_image("b")).startswith("data:image/png;base64,")
    with pytest.raises(EmptyResponseError):
        asyncio.run(client.generate_long_text("x"))
    assert [kind for kind, _, _ in client.calls] == ["structured", "image", "image", "long_text"]
