"""Tests for the sales-agent proxy and its system prompt."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from salesdesk.application.exceptions import NotConfiguredError, UpstreamError
from salesdesk.application.use_cases import AgentProxy
from salesdesk.application.use_cases.agent_proxy import (
    GUIDELINES,
    PERSONA,
    build_system_prompt,
    describe_product,
)
from salesdesk.domain.models import Accessory, AgentMessage, Desktop, Laptop


class TestPrompt:
    def test_describe_laptop(self):
        laptop = Laptop(
            id="1",
            display_name="Dell Latitude 7490",
            price_range="32,000",
            stock_quantity=3,
            processor="i5",
            generation="8th Gen",
            ram_gb=8,
            storage_type="SSD",
            storage_gb=256,
            screen_size='14"',
        )
        assert describe_product(laptop) == (
            "- Dell Latitude 7490 - ₹32,000 "
            '(i5, 8th Gen, 8GB RAM, 256GB SSD, 14", Used) - 3 in stock'
        )

    def test_describe_accessory_and_stock_states(self):
        assert describe_product(Accessory(id="1", display_name="Mouse")) == (
            "- Mouse - Stock not tracked"
        )
        assert describe_product(
            Desktop(id="2", display_name="HP 800", stock_quantity=0, condition="")
        ) == "- HP 800 - Out of stock"

    def test_system_prompt_sections(self):
        prompt = build_system_prompt(
            {"laptops": [Laptop(id="1", display_name="Dell", condition="New", stock_quantity=2)]}
        )
        assert prompt.startswith(PERSONA)
        assert "### Laptops:\n- Dell (New) - 2 in stock" in prompt
        assert "### Desktops:\n- None listed right now" in prompt
        assert "### Accessories:\n- None listed right now" in prompt
        assert prompt.endswith(GUIDELINES)


class TestCatalog:
    def test_catalog_from_store(self, store):
        store.insert_row("laptops", {"brand": "Dell", "model": "E7450", "stock_quantity": 1})
        catalog = AgentProxy(AsyncMock(), store).load_catalog()
        assert [p.display_name for p in catalog["laptops"]] == ["Dell E7450"]
        assert catalog["laptops"][0].status == "low_stock"
        assert catalog["accessories"] == []

    def test_unavailable_store_gives_empty_catalog(self):
        store = MagicMock()
        store.list_rows.side_effect = NotConfiguredError("Database connection not configured")
        assert AgentProxy(AsyncMock(), store).load_catalog() == {}

    def test_no_store(self):
        assert AgentProxy(AsyncMock()).load_catalog() == {}


class TestOpenStream:
    async def test_messages_ordered_system_history_new(self):
        gateway = AsyncMock()
        gateway.open_stream.return_value = "stream"
        proxy = AgentProxy(gateway)

        stream = await proxy.open_stream(
            [AgentMessage(role="user", content="Any gaming laptops?")],
            [
                AgentMessage(role="user", content="Hi"),
                AgentMessage(role="assistant", content="Hello!"),
            ],
        )

        assert stream == "stream"
        (sent,) = gateway.open_stream.await_args.args
        assert [m.role for m in sent] == ["system", "user", "assistant", "user"]
        assert sent[0].content.startswith(PERSONA)
        assert sent[-1].content == "Any gaming laptops?"

    @pytest.mark.parametrize(
        ("upstream_status", "status", "message"),
        [
            (429, 429, "Rate limit exceeded. Please try again in a moment."),
            (402, 402, "AI credits exhausted. Please add credits to continue."),
            (503, 500, "AI service error"),
        ],
    )
    async def test_gateway_errors_are_mapped(self, upstream_status, status, message):
        gateway = AsyncMock()
        gateway.open_stream.side_effect = UpstreamError(
            "boom", status_code=upstream_status, details={"error": "x"}
        )

        with pytest.raises(UpstreamError) as excinfo:
            await AgentProxy(gateway).open_stream([AgentMessage(role="user", content="hi")])

        assert excinfo.value.status_code == status
        assert str(excinfo.value) == message

    async def test_not_configured_propagates(self):
        gateway = AsyncMock()
        gateway.open_stream.side_effect = NotConfiguredError("LLM gateway API key not configured")
        with pytest.raises(NotConfiguredError):
            await AgentProxy(gateway).open_stream([AgentMessage(role="user", content="hi")])
