"""Unit tests for NLQ LLM SQL generation."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from openai import OpenAIError

from sqlworkspace.core.exceptions import UpstreamModelError
from sqlworkspace.nlq.llm_sql import (
    SYSTEM_MESSAGE,
    TranslationResult,
    build_prompt,
    parse_model_reply,
    translate_question,
)


def _mock_client(content):
    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = content
    mock_client = MagicMock()
    mock_client.chat.completions.create = AsyncMock(return_value=mock_response)
    return mock_client


@pytest.fixture
def llm_settings():
    with patch("sqlworkspace.nlq.llm_sql.settings") as mock_settings:
        mock_settings.LLM_ENABLED = True
        mock_settings.LLM_API_KEY = "test-key"
        mock_settings.LLM_BASE_URL = "https://llm.example.com/v1"
        mock_settings.LLM_MODEL = "test-model"
        mock_settings.LLM_MAX_TOKENS = 256
        yield mock_settings


class TestParseModelReply:
    """Tests for sectioned reply parsing."""

    def test_well_formed_reply(self):
        result = parse_model_reply(
            "SQL_QUERY:\nSELECT 1\n\nBUSINESS_EXPLANATION:\nok\n\nWARNING:\n"
        )

        assert result == TranslationResult(sql="SELECT 1", explanation="ok", warning="")

    def test_missing_warning_marker(self):
        result = parse_model_reply("SQL_QUERY:\nSELECT 1\n\nBUSINESS_EXPLANATION:\nok")

        assert result.sql == "SELECT 1"
        assert result.explanation == "ok"
        assert result.warning == ""

    def test_missing_explanation_marker_stops_sql_at_warning(self):
        result = parse_model_reply(
            "SQL_QUERY:\nDELETE FROM orders\nWARNING:\nRemoves all orders"
        )

        assert result.sql == "DELETE FROM orders"
        assert result.explanation == ""
        assert result.warning == "Removes all orders"

    def test_reply_without_markers(self):
        assert parse_model_reply("I cannot help with that.") == TranslationResult()

    def test_code_fences_are_stripped(self):
        result = parse_model_reply(
            "SQL_QUERY:\n```sql\nSELECT id FROM orders\n```\n\n"
            "BUSINESS_EXPLANATION:\nLists ids\n\nWARNING:\nNone needed"
        )

        assert result.sql == "SELECT id FROM orders"
        assert result.explanation == "Lists ids"
        assert result.warning == "None needed"

    def test_multiline_sections(self):
        result = parse_model_reply(
            "Sure!\nSQL_QUERY:\nSELECT o.id\nFROM orders o\nJOIN users u ON u.id = o.user_id\n\n"
            "BUSINESS_EXPLANATION:\nJoins orders to users.\nOne row per order.\n"
        )

        assert result.sql == "SELECT o.id\nFROM orders o\nJOIN users u ON u.id = o.user_id"
        assert result.explanation == "Joins orders to users.\nOne row per order."


class TestBuildPrompt:
    """Tests for prompt construction."""

    def test_prompt_embeds_schema_and_question(self):
        prompt = build_prompt("orders(id int, total decimal)", "show all orders")

        assert "orders(id int, total decimal)" in prompt
        assert "show all orders" in prompt

    def test_prompt_contains_rules_and_output_format(self):
        prompt = build_prompt("t(a int)", "q")

        assert "Use MySQL syntax" in prompt
        assert "Use ONLY the schemas provided below" in prompt
        assert "Do NOT add LIMIT unless explicitly requested" in prompt
        assert "Do NOT hallucinate columns or tables" in prompt
        assert "Warn about destructive operations" in prompt
        assert prompt.index("SQL_QUERY:") < prompt.index("BUSINESS_EXPLANATION:") < prompt.index("WARNING:")


class TestTranslateQuestion:
    """Tests for the LLM call."""

    @pytest.mark.asyncio
    async def test_successful_translation(self, llm_settings, mock_openai_client):
        client = _mock_client(
            "SQL_QUERY:\nSELECT id, total FROM orders\n\n"
            "BUSINESS_EXPLANATION:\nAll orders.\n\nWARNING:\n"
        )
        mock_openai_client.return_value = client

        result = await translate_question("orders(id int, total decimal)", "show all orders")

        assert result.sql == "SELECT id, total FROM orders"
        assert result.explanation == "All orders."

        mock_openai_client.assert_called_once_with(
            base_url="https://llm.example.com/v1", api_key="test-key"
        )
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["temperature"] == 0
        assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_MESSAGE}
        assert "orders(id int, total decimal)" in kwargs["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_disabled_llm_raises(self, llm_settings):
        llm_settings.LLM_ENABLED = False

        with pytest.raises(UpstreamModelError, match="disabled"):
            await translate_question("t(a int)", "q")

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self, llm_settings, mock_openai_client):
        llm_settings.LLM_API_KEY = ""

        with pytest.raises(UpstreamModelError, match="not configured"):
            await translate_question("t(a int)", "q")

        mock_openai_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_api_error_raises(self, llm_settings, mock_openai_client):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=OpenAIError("rate limited"))
        mock_openai_client.return_value = client

        with pytest.raises(UpstreamModelError, match="rate limited"):
            await translate_question("t(a int)", "q")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, ""])
    async def test_empty_content_raises(self, llm_settings, mock_openai_client, content):
        mock_openai_client.return_value = _mock_client(content)

        with pytest.raises(UpstreamModelError, match="no content"):
            await translate_question("t(a int)", "q")

    @pytest.mark.asyncio
    async def test_reply_without_sql_raises(self, llm_settings, mock_openai_client):
        mock_openai_client.return_value = _mock_client("BUSINESS_EXPLANATION:\nNo idea")

        with pytest.raises(UpstreamModelError, match="did not contain a SQL query"):
            await translate_question("t(a int)", "q")
