import os
import unittest
from unittest.mock import Mock, patch

from chat_relay.history.memory_store import InMemorySessionHistoryStore
from chat_relay.infra import runtime
from chat_relay.orchestration.direct import DirectChatOrchestrator
from chat_relay.orchestration.langgraph_flow import LangGraphChatOrchestrator
from chat_relay.providers.bedrock_provider import BedrockChatProvider
from chat_relay.providers.openai_provider import OpenAICompatibleChatProvider


class ResolveSecretTests(unittest.TestCase):
    def test_first_non_empty_environment_variable_wins(self) -> None:
        with patch.dict(os.environ, {"FIRST_KEY": "", "SECOND_KEY": "from-env"}):
            self.assertEqual(runtime.resolve_secret(("FIRST_KEY", "SECOND_KEY"), None), "from-env")

    def test_falls_back_to_ssm_parameter(self) -> None:
        ssm = Mock()
        ssm.get_parameter.return_value = {"Parameter": {"Value": "from-ssm"}}

        with patch.dict(os.environ, {}, clear=True):
            with patch.object(runtime, "get_ssm_client", return_value=ssm):
                value = runtime.resolve_secret(("MISSING_KEY",), "/chat-relay/test-key")

        self.assertEqual(value, "from-ssm")
        ssm.get_parameter.assert_called_once_with(
            Name="/chat-relay/test-key", WithDecryption=True
        )

    def test_no_sources(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            self.assertIsNone(runtime.resolve_secret(("MISSING_KEY",), None))


class BuilderTests(unittest.TestCase):
    def test_provider_pool_follows_rotation(self) -> None:
        pool = runtime.build_provider_pool(["nvidia", "claude-haiku", "qwen3"])

        self.assertEqual(pool.names, ["nvidia", "claude-haiku", "qwen3"])
        self.assertIsInstance(pool.select_next(), OpenAICompatibleChatProvider)
        self.assertIsInstance(pool.select_next(), BedrockChatProvider)

    def test_unknown_provider_fails_at_startup(self) -> None:
        with self.assertRaisesRegex(RuntimeError, "Unsupported provider: mystery"):
            runtime.build_provider_pool(["mystery"])

    def test_empty_rotation_is_reported_once(self) -> None:
        with self.assertLogs("chat_relay.infra.runtime", level="ERROR"):
            pool = runtime.build_provider_pool([])
        self.assertEqual(len(pool), 0)

    def test_history_store_defaults_to_memory(self) -> None:
        self.assertIsInstance(runtime.build_history_store(""), InMemorySessionHistoryStore)

    def test_orchestrator_strategies(self) -> None:
        store = InMemorySessionHistoryStore()
        pool = runtime.build_provider_pool([])

        self.assertIsInstance(
            runtime.build_orchestrator(store, pool, strategy="direct"), DirectChatOrchestrator
        )
        self.assertIsInstance(
            runtime.build_orchestrator(store, pool, strategy="langgraph"),
            LangGraphChatOrchestrator,
        )
        with self.assertRaises(RuntimeError):
            runtime.build_orchestrator(store, pool, strategy="unknown")


class LangSmithConfigurationTests(unittest.TestCase):
    def test_missing_key_disables_tracing(self) -> None:
        with patch.dict(os.environ, {"LANGSMITH_TRACING": "true"}, clear=True):
            runtime._configure_langsmith(None)
            self.assertNotIn("LANGSMITH_TRACING", os.environ)

    def test_key_enables_tracing(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            runtime._configure_langsmith("ls-key")
            self.assertEqual(os.environ["LANGSMITH_TRACING"], "true")
            self.assertEqual(os.environ["LANGSMITH_PROJECT"], "chat-relay")


if __name__ == "__main__":
    unittest.main()
