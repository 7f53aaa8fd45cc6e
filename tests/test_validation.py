"""Tests for request and response schema validation."""

import json

import pytest

from bayen.errors import SchemaError
from bayen.models import AssistantResponse, ChatRequest, Message, Model, Role
from bayen.validation import validate_request, validate_response


def _request(**overrides) -> ChatRequest:
    fields = {
        "model": Model.PRO,
        "messages": [Message(role=Role.USER, content="What is the penalty?")],
    }
    fields.update(overrides)
    return ChatRequest(**fields)


# ---------------------------------------------------------------------------
# validate_request
# ---------------------------------------------------------------------------


class TestValidateRequest:
    @pytest.mark.parametrize("model", [Model.PRO, Model.LITE, "bayen-pro", "bayen-lite"])
    def test_accepts_known_models(self, model):
        validate_request(_request(model=model))

    def test_accepts_multi_turn_conversation(self):
        validate_request(
            _request(
                messages=[
                    {"role": "user", "content": "Define forgery."},
                    {"role": "assistant", "content": "Forgery is ..."},
                    {"role": "system", "content": "Answer in IRAC form."},
                    {"role": "user", "content": "And the penalty?"},
                ],
                max_tokens=512,
                structured_output=False,
            )
        )

    def test_unknown_model(self):
        with pytest.raises(SchemaError) as exc:
            validate_request(_request(model="gpt-4o"))
        assert exc.value.field == "model"

    def test_empty_messages(self):
        with pytest.raises(SchemaError) as exc:
            validate_request(_request(messages=[]))
        assert exc.value.field == "messages"

    @pytest.mark.parametrize("role", ["system", "assistant"])
    def test_first_message_must_be_user(self, role):
        with pytest.raises(SchemaError) as exc:
            validate_request(_request(messages=[Message(role=role, content="hello")]))
        assert exc.value.field == "messages[0].role"

    def test_unknown_role(self):
        messages = [Message("user", "q"), Message("tool", "output")]
        with pytest.raises(SchemaError) as exc:
            validate_request(_request(messages=messages))
        assert exc.value.field == "messages[1].role"

    @pytest.mark.parametrize("content", ["", "   \n"])
    def test_blank_content(self, content):
        messages = [Message("user", "q"), Message("assistant", content)]
        with pytest.raises(SchemaError) as exc:
            validate_request(_request(messages=messages))
        assert exc.value.field == "messages[1].content"

    @pytest.mark.parametrize("max_tokens", [0, -5, True, 1.5, "100"])
    def test_bad_max_tokens(self, max_tokens):
        with pytest.raises(SchemaError) as exc:
            validate_request(_request(max_tokens=max_tokens))
        assert exc.value.field == "max_tokens"

    @pytest.mark.parametrize(
        "messages,field",
        [
            ([{"role": "user"}], "messages[0]"),
            ([{"role": "user", "content": "q", "name": "n"}], "messages[0]"),
            (["hello"], "messages[0]"),
            ([Message("user", "q"), 42], "messages[1]"),
            (None, "messages"),
            (7, "messages"),
            ("hello", "messages"),
        ],
    )
    def test_malformed_messages_rejected_at_validation(self, messages, field):
        req = ChatRequest(model=Model.PRO, messages=messages)

        with pytest.raises(SchemaError) as exc:
            validate_request(req)
        assert exc.value.field == field

    def test_mapping_with_role_and_content_converted(self):
        req = _request(messages=[{"role": "user", "content": "q"}])
        assert req.messages == (Message("user", "q"),)

    def test_error_message_names_field(self):
        with pytest.raises(SchemaError, match="^messages: "):
            validate_request(_request(messages=[]))


# ---------------------------------------------------------------------------
# ChatRequest serialisation
# ---------------------------------------------------------------------------


class TestChatRequestPayload:
    def test_defaults(self):
        payload = _request(model=Model.LITE).to_payload()
        assert payload == {
            "model": "bayen-lite",
            "messages": [{"role": "user", "content": "What is the penalty?"}],
            "structured_output": True,
        }

    def test_max_tokens_and_plain_mode(self):
        payload = _request(max_tokens=256, structured_output=False).to_payload()
        assert payload["max_tokens"] == 256
        assert payload["structured_output"] is False

    def test_messages_are_immutable(self):
        req = _request()
        assert isinstance(req.messages, tuple)
        with pytest.raises(AttributeError):
            req.messages[0].content = "changed"

    def test_payload_is_json_serialisable(self, lite_request):
        text = json.dumps(lite_request.to_payload(), ensure_ascii=False)
        assert "ما العقوبة" in text


# ---------------------------------------------------------------------------
# validate_response
# ---------------------------------------------------------------------------


class TestValidateStructuredResponse:
    def test_round_trip_preserves_fields(self, structured_body):
        result = validate_response(json.dumps(structured_body), structured=True)

        assert isinstance(result, AssistantResponse)
        assert result.think is None
        assert result.message == structured_body["message"]
        assert result.citations == structured_body["citations"]
        meta = structured_body["metadata"]
        assert result.metadata.id == meta["id"]
        assert result.metadata.model == meta["model"]
        assert result.metadata.created == meta["created"]
        assert result.metadata.object == meta["object"]
        assert result.metadata.title == meta["title"]

    def test_accepts_bytes(self, structured_body):
        raw = json.dumps(structured_body, ensure_ascii=False).encode("utf-8")
        assert validate_response(raw, structured=True).metadata.title == "عقوبة التزوير"

    def test_think_may_be_absent_or_text(self, structured_body):
        del structured_body["think"]
        assert validate_response(json.dumps(structured_body), True).think is None

        structured_body["think"] = "The question concerns article 5 ..."
        assert validate_response(json.dumps(structured_body), True).think.startswith("The")

    def test_empty_citations(self, structured_body):
        structured_body["citations"] = []
        assert validate_response(json.dumps(structured_body), True).citations == []

    def test_extra_keys_ignored(self, structured_body):
        structured_body["usage"] = {"tokens": 12}
        validate_response(json.dumps(structured_body), True)

    @pytest.mark.parametrize(
        "path",
        [
            ("message",),
            ("citations",),
            ("metadata",),
            ("metadata", "id"),
            ("metadata", "model"),
            ("metadata", "created"),
            ("metadata", "object"),
            ("metadata", "title"),
        ],
    )
    def test_missing_required_field(self, structured_body, path):
        target = structured_body
        for key in path[:-1]:
            target = target[key]
        del target[path[-1]]

        with pytest.raises(SchemaError) as exc:
            validate_response(json.dumps(structured_body), True)
        assert exc.value.field == ".".join(path)

    def test_created_must_be_integer(self, structured_body):
        structured_body["metadata"]["created"] = "1735689600"
        with pytest.raises(SchemaError) as exc:
            validate_response(json.dumps(structured_body), True)
        assert exc.value.field == "metadata.created"

    def test_id_must_be_uuid(self, structured_body):
        structured_body["metadata"]["id"] = "not-a-uuid"
        with pytest.raises(SchemaError) as exc:
            validate_response(json.dumps(structured_body), True)
        assert exc.value.field == "metadata.id"

    def test_citation_entries_must_be_strings(self, structured_body):
        structured_body["citations"] = ["https://example.org", 7]
        with pytest.raises(SchemaError) as exc:
            validate_response(json.dumps(structured_body), True)
        assert exc.value.field == "citations[1]"

    def test_markdown_body_rejected(self):
        with pytest.raises(SchemaError) as exc:
            validate_response("# Answer\n\nplain text", True)
        assert exc.value.field == "body"

    def test_array_body_rejected(self):
        with pytest.raises(SchemaError, match="JSON object"):
            validate_response("[]", True)


class TestValidatePlainResponse:
    def test_raw_markdown(self):
        text = "**Issue:** forgery\n\n- [Law](https://example.org)"
        assert validate_response(text, structured=False) == text

    def test_json_string_is_unwrapped(self):
        assert validate_response('"# Answer\\n\\nText"', structured=False) == "# Answer\n\nText"

    def test_markdown_starting_with_link(self):
        text = "[Article 5](https://example.org) applies."
        assert validate_response(text, structured=False) == text

    def test_json_object_rejected(self, structured_body):
        with pytest.raises(SchemaError):
            validate_response(json.dumps(structured_body), structured=False)

    @pytest.mark.parametrize("body", ["", "  ", '""'])
    def test_empty_rejected(self, body):
        with pytest.raises(SchemaError, match="empty"):
            validate_response(body, structured=False)
