"""Integration tests for the chat endpoint."""

from fastapi.testclient import TestClient

from backend.clinic.main import create_app
from backend.clinic.services import ClinicServices
from tests.fakes import FakeChatProvider, FakeEmbeddingProvider, FakeTokenCounter


class TestChatAPI:
    """Test suite for /chat."""

    def test_streams_reply(self, client, chat_provider):
        response = client.post("/chat", json={"messages": [{"role": "user", "content": "Hi"}]})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Hello from Emer"
        assert chat_provider.system_prompts[0].startswith("You are Emer")

    def test_active_knowledge_reaches_system_prompt(self, client, chat_provider):
        client.post(
            "/knowledge",
            json={
                "category": "Pricing",
                "title": "Consultation",
                "content": "$350, applied to treatment if booked.",
                "file_name": "prices.pdf",
            },
        )
        client.post(
            "/knowledge",
            json={"category": "FAQs", "title": "Hidden", "content": "Draft.", "is_active": False},
        )

        client.post("/chat", json={"messages": [{"role": "user", "content": "How much?"}]})

        prompt = chat_provider.system_prompts[0]
        assert "PRICING:\n- Consultation: $350, applied to treatment if booked. [Source: prices.pdf]" in prompt
        assert "Hidden" not in prompt

    def test_requires_user_message(self, client):
        response = client.post(
            "/chat", json={"messages": [{"role": "assistant", "content": "Hello"}]}
        )
        assert response.status_code == 400

    def test_empty_messages_rejected(self, client):
        assert client.post("/chat", json={"messages": []}).status_code == 422

    def test_missing_key_returns_503(self, settings):
        services = ClinicServices.build(
            settings,
            embedding_provider=FakeEmbeddingProvider(),
            chat_provider=FakeChatProvider(configured=False),
            counter=FakeTokenCounter(),
        )
        client = TestClient(create_app(services=services))

        response = client.post("/chat", json={"messages": [{"role": "user", "content": "Hi"}]})

        assert response.status_code == 503
        assert "not configured" in response.json()["detail"]
