import unittest

from chat_relay.constants import MAX_MESSAGE_CONTENT_LENGTH, MAX_MESSAGES_PER_REQUEST
from chat_relay.errors import SessionError, ValidationError
from chat_relay.schemas import ChatMessage, ChatRequestBody
from chat_relay.validation import (
    build_chat_turn,
    sanitize_text,
    validate_messages,
    validate_session_id,
)


class ValidateSessionIdTests(unittest.TestCase):
    def test_accepts_well_formed_identifier(self) -> None:
        self.assertEqual(validate_session_id("abcdef12"), "abcdef12")
        self.assertEqual(validate_session_id("session_01-A"), "session_01-A")

    def test_rejection_codes(self) -> None:
        cases = {
            None: "session_missing",
            "": "session_missing",
            123: "session_missing",
            "abc": "session_too_short",
            "a" * 129: "session_too_long",
            "abc def 12": "session_invalid_chars",
            "abcdef12!": "session_invalid_chars",
        }
        for value, code in cases.items():
            with self.subTest(value=value):
                with self.assertRaises(SessionError) as ctx:
                    validate_session_id(value)
                self.assertEqual(ctx.exception.code, code)


class ValidateMessagesTests(unittest.TestCase):
    def test_returns_chat_messages(self) -> None:
        messages = validate_messages(
            [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]
        )

        self.assertEqual(
            messages,
            [ChatMessage(role="user", content="hi"), ChatMessage(role="assistant", content="hello")],
        )

    def test_rejection_codes(self) -> None:
        cases = [
            (None, "messages_not_list"),
            ({"role": "user"}, "messages_not_list"),
            ([], "messages_empty"),
            ([{"role": "user", "content": "x"}] * (MAX_MESSAGES_PER_REQUEST + 1), "messages_too_many"),
            (["hi"], "message_not_object"),
            ([{"role": "user"}], "message_missing_fields"),
            ([{"role": "tool", "content": "x"}], "invalid_role"),
            ([{"role": "user", "content": 5}], "invalid_content"),
            ([{"role": "user", "content": None}], "invalid_content"),
            (
                [{"role": "user", "content": "x" * (MAX_MESSAGE_CONTENT_LENGTH + 1)}],
                "content_too_long",
            ),
        ]
        for value, code in cases:
            with self.subTest(code=code):
                with self.assertRaises(ValidationError) as ctx:
                    validate_messages(value)
                self.assertEqual(ctx.exception.code, code)

    def test_error_names_offending_index(self) -> None:
        with self.assertRaisesRegex(ValidationError, "index 1"):
            validate_messages([{"role": "user", "content": "ok"}, {"role": "bot", "content": "x"}])

    def test_same_malformed_request_always_fails_the_same_way(self) -> None:
        codes = set()
        for _ in range(3):
            with self.assertRaises(ValidationError) as ctx:
                validate_messages([])
            codes.add(ctx.exception.code)
        self.assertEqual(codes, {"messages_empty"})

    def test_content_is_sanitized(self) -> None:
        messages = validate_messages([{"role": "user", "content": "a\x00b\tc\nd\x7f"}])
        self.assertEqual(messages[0].content, "ab\tc\nd")


class SanitizeTextTests(unittest.TestCase):
    def test_keeps_whitespace_controls(self) -> None:
        self.assertEqual(sanitize_text("line1\r\nline2\t!"), "line1\r\nline2\t!")
        self.assertEqual(sanitize_text("\x01\x02bell\x07"), "bell")


class BuildChatTurnTests(unittest.TestCase):
    def test_header_session_takes_precedence(self) -> None:
        body = ChatRequestBody(
            messages=[{"role": "user", "content": "hi"}],
            session_id="body-session",
            systemInstruction="Be brief",
            context="ctx",
        )

        turn = build_chat_turn(body, header_session_id="header-session")

        self.assertEqual(turn.session_id, "header-session")
        self.assertEqual(turn.system_instruction, "Be brief")
        self.assertEqual(turn.context, "ctx")
        self.assertEqual(turn.messages, (ChatMessage(role="user", content="hi"),))

    def test_falls_back_to_body_session(self) -> None:
        body = ChatRequestBody(messages=[{"role": "user", "content": "hi"}], session_id="abcdef12")
        self.assertEqual(build_chat_turn(body).session_id, "abcdef12")

    def test_missing_session_is_session_error(self) -> None:
        body = ChatRequestBody(messages=[{"role": "user", "content": "hi"}])
        with self.assertRaises(SessionError) as ctx:
            build_chat_turn(body)
        self.assertEqual(ctx.exception.code, "session_missing")

    def test_messages_checked_before_session(self) -> None:
        body = ChatRequestBody(messages=[])
        with self.assertRaises(ValidationError):
            build_chat_turn(body)

    def test_non_string_instruction_and_context_are_rejected(self) -> None:
        cases = [
            ({"systemInstruction": ["rules"]}, "invalid_system_instruction"),
            ({"context": 5}, "invalid_context"),
        ]
        for extra, code in cases:
            with self.subTest(code=code):
                body = ChatRequestBody(
                    messages=[{"role": "user", "content": "hi"}], session_id="abcdef12", **extra
                )
                with self.assertRaises(ValidationError) as ctx:
                    build_chat_turn(body)
                self.assertEqual(ctx.exception.code, code)


if __name__ == "__main__":
    unittest.main()
