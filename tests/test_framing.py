import asyncio
import unittest
from collections.abc import AsyncIterator

from chat_adapters.framing import iter_frames


async def _chunks(*parts: bytes | str) -> AsyncIterator[bytes | str]:
    for part in parts:
        yield part


async def _frames(*parts: bytes | str) -> list[str]:
    return [frame async for frame in iter_frames(_chunks(*parts))]


class FramerTests(unittest.TestCase):
    def test_splits_complete_lines(self) -> None:
        frames = asyncio.run(_frames(b"data: a\ndata: b\n"))
        self.assertEqual(frames, ["data: a", "data: b"])

    def test_carries_partial_line_across_reads(self) -> None:
        frames = asyncio.run(_frames(b"data: hel", b"lo\ndata: ", b"world\n"))
        self.assertEqual(frames, ["data: hello", "data: world"])

    def test_unterminated_tail_is_discarded(self) -> None:
        frames = asyncio.run(_frames(b"data: one\ndata: tw"))
        self.assertEqual(frames, ["data: one"])

    def test_multibyte_character_split_between_reads(self) -> None:
        encoded = "data: héllo\n".encode()
        cut = encoded.index("é".encode()) + 1
        frames = asyncio.run(_frames(encoded[:cut], encoded[cut:]))
        self.assertEqual(frames, ["data: héllo"])

    def test_crlf_and_blank_lines(self) -> None:
        frames = asyncio.run(_frames("event: x\r\n\r\ndata: y\r\n"))
        self.assertEqual(frames, ["event: x", "", "data: y"])

    def test_empty_body(self) -> None:
        self.assertEqual(asyncio.run(_frames()), [])


if __name__ == "__main__":
    unittest.main()
