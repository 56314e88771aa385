import json
import unittest

from chat_adapters.providers import anthropic, google, openai


def _data(payload: dict) -> str:
    return f"data: {json.dumps(payload)}"


class OpenAIDecoderTests(unittest.TestCase):
    def test_token_delta(self) -> None:
        events = openai.decode_frame(_data({"choices": [{"delta": {"content": "Hi"}}]}), "gpt-4")
        self.assertEqual([(e.type, e.content) for e in events], [("token", "Hi")])

    def test_ignored_frames(self) -> None:
        for frame in ["", "   ", "data: [DONE]", ": keep-alive", "event: ping", "data: {not json"]:
            with self.subTest(frame=frame):
                self.assertEqual(openai.decode_frame(frame, "gpt-4"), [])

    def test_tool_call_fragments_are_not_joined(self) -> None:
        first = _data(
            {
                "choices": [
                    {
                        "delta": {
                            "tool_calls": [
                                {
                                    "index": 0,
                                    "id": "call_1",
                                    "function": {"name": "lookup", "arguments": ""},
                                }
                            ]
                        }
                    }
                ]
            }
        )
        second = _data(
            {"choices": [{"delta": {"tool_calls": [{"index": 0, "function": {"arguments": '{"q":'}}]}}]}
        )

        (a,) = openai.decode_frame(first, "gpt-4")
        (b,) = openai.decode_frame(second, "gpt-4")

        self.assertEqual(a.type, "tool_call")
        self.assertEqual(a.tool_call.id, "call_1")
        self.assertEqual(a.tool_call.function.name, "lookup")
        self.assertEqual(b.tool_call.function.name, "")
        self.assertEqual(b.tool_call.function.arguments, '{"q":')
        self.assertEqual(b.tool_call.index, 0)

    def test_usage_frame_becomes_done(self) -> None:
        frame = _data(
            {"choices": [], "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}}
        )
        (event,) = openai.decode_frame(frame, "gpt-4")
        self.assertEqual(event.type, "done")
        self.assertEqual(event.usage.total_tokens, 15)
        self.assertAlmostEqual(event.usage.estimated_cost, 10 / 1000 * 0.03 + 5 / 1000 * 0.06)

    def test_error_frame(self) -> None:
        (event,) = openai.decode_frame(_data({"error": {"message": "overloaded"}}), "gpt-4")
        self.assertEqual((event.type, event.error), ("error", "overloaded"))

    def test_wrong_shape_frames_are_skipped(self) -> None:
        for payload in [{"choices": [None]}, {"choices": [], "usage": 5}, {"choices": [{"delta": "x"}]}]:
            with self.subTest(payload=payload):
                self.assertEqual(openai.decode_frame(_data(payload), "gpt-4"), [])


class AnthropicDecoderTests(unittest.TestCase):
    model = "claude-3-haiku-20240307"

    def test_text_delta(self) -> None:
        frame = _data(
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "Hey"}}
        )
        (event,) = anthropic.decode_frame(frame, self.model)
        self.assertEqual((event.type, event.content), ("token", "Hey"))

    def test_event_lines_and_bookkeeping_frames_are_ignored(self) -> None:
        frames = [
            "event: content_block_delta",
            _data({"type": "message_start", "message": {"usage": {"input_tokens": 3}}}),
            _data({"type": "ping"}),
            _data({"type": "message_stop"}),
            "data: {broken",
        ]
        for frame in frames:
            with self.subTest(frame=frame):
                self.assertEqual(anthropic.decode_frame(frame, self.model), [])

    def test_usage_on_message_delta(self) -> None:
        frame = _data(
            {
                "type": "message_delta",
                "delta": {"stop_reason": "end_turn"},
                "usage": {"input_tokens": 1000, "output_tokens": 2000},
            }
        )
        (event,) = anthropic.decode_frame(frame, self.model)
        self.assertEqual(event.type, "done")
        self.assertEqual(event.usage.prompt_tokens, 1000)
        self.assertEqual(event.usage.completion_tokens, 2000)
        self.assertEqual(event.usage.total_tokens, 3000)
        self.assertAlmostEqual(event.usage.estimated_cost, 0.00025 + 0.0025)

    def test_tool_use_start_and_argument_fragment(self) -> None:
        start = _data(
            {
                "type": "content_block_start",
                "index": 1,
                "content_block": {"type": "tool_use", "id": "toolu_1", "name": "search", "input": {}},
            }
        )
        fragment = _data(
            {
                "type": "content_block_delta",
                "index": 1,
                "delta": {"type": "input_json_delta", "partial_json": '{"term": "x'},
            }
        )
        (a,) = anthropic.decode_frame(start, self.model)
        (b,) = anthropic.decode_frame(fragment, self.model)
        self.assertEqual((a.tool_call.id, a.tool_call.function.name, a.tool_call.index), ("toolu_1", "search", 1))
        self.assertEqual((b.tool_call.function.arguments, b.tool_call.index), ('{"term": "x', 1))

    def test_thinking_delta(self) -> None:
        frame = _data(
            {
                "type": "content_block_delta",
                "index": 0,
                "delta": {"type": "thinking_delta", "thinking": "Considering options"},
            }
        )
        (event,) = anthropic.decode_frame(frame, self.model)
        self.assertEqual((event.type, event.thinking_step), ("thinking", "Considering options"))

    def test_error_frame(self) -> None:
        frame = _data({"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}})
        (event,) = anthropic.decode_frame(frame, self.model)
        self.assertEqual((event.type, event.error), ("error", "Overloaded"))

    def test_wrong_shape_frames_are_skipped(self) -> None:
        for payload in [
            {"type": "content_block_delta", "delta": "oops"},
            {"type": "content_block_start", "content_block": [1]},
            {"type": "message_delta", "usage": 5},
        ]:
            with self.subTest(payload=payload):
                self.assertEqual(anthropic.decode_frame(_data(payload), self.model), [])


class GoogleDecoderTests(unittest.TestCase):
    model = "gemini-1.5-flash"

    def test_raw_json_line(self) -> None:
        frame = json.dumps({"candidates": [{"content": {"parts": [{"text": "Hello"}, {"text": "!"}]}}]})
        events = google.decode_frame(frame, self.model)
        self.assertEqual([e.content for e in events], ["Hello", "!"])

    def test_array_punctuation_is_trimmed(self) -> None:
        body = {"candidates": [{"content": {"parts": [{"text": "x"}]}}]}
        for frame in ["[" + json.dumps(body), "," + json.dumps(body), json.dumps(body) + "]"]:
            with self.subTest(frame=frame):
                (event,) = google.decode_frame(frame, self.model)
                self.assertEqual(event.content, "x")

    def test_ignored_frames(self) -> None:
        for frame in ["", "[DONE]", "[", "]", ",", "not json at all"]:
            with self.subTest(frame=frame):
                self.assertEqual(google.decode_frame(frame, self.model), [])

    def test_data_prefix_is_not_recognized(self) -> None:
        frame = "data: " + json.dumps({"candidates": [{"content": {"parts": [{"text": "x"}]}}]})
        self.assertEqual(google.decode_frame(frame, self.model), [])

    def test_usage_metadata_becomes_done(self) -> None:
        frame = json.dumps(
            {
                "candidates": [{"content": {"parts": [{"text": "end"}]}, "finishReason": "STOP"}],
                "usageMetadata": {
                    "promptTokenCount": 4,
                    "candidatesTokenCount": 6,
                    "totalTokenCount": 10,
                },
            }
        )
        token, done = google.decode_frame(frame, self.model)
        self.assertEqual(token.content, "end")
        self.assertEqual(done.type, "done")
        self.assertEqual(done.usage.total_tokens, 10)

    def test_function_call_part(self) -> None:
        frame = json.dumps(
            {"candidates": [{"content": {"parts": [{"functionCall": {"name": "f", "args": {"a": 1}}}]}}]}
        )
        (event,) = google.decode_frame(frame, self.model)
        self.assertEqual(event.type, "tool_call")
        self.assertEqual(event.tool_call.function.name, "f")
        self.assertEqual(json.loads(event.tool_call.function.arguments), {"a": 1})

    def test_usage_without_finish_reason_is_not_terminal(self) -> None:
        frame = json.dumps(
            {
                "candidates": [{"content": {"parts": [{"text": "Hi"}]}}],
                "usageMetadata": {"promptTokenCount": 4, "candidatesTokenCount": 1, "totalTokenCount": 5},
            }
        )
        events = google.decode_frame(frame, self.model)
        self.assertEqual([(e.type, e.content) for e in events], [("token", "Hi")])

    def test_wrong_shape_frames_are_skipped(self) -> None:
        for payload in [{"candidates": ["x"]}, {"candidates": [{"content": {"parts": "x"}}]}]:
            with self.subTest(payload=payload):
                self.assertEqual(google.decode_frame(json.dumps(payload), self.model), [])


if __name__ == "__main__":
    unittest.main()
