"""Token counting used to size chunks."""

from typing import Protocol

import tiktoken


class TokenCounter(Protocol):
    """Counts model tokens and slices text into token windows."""

    def count(self, text: str) -> int:
        """Return the number of tokens in text."""
        ...

    def window(self, text: str, max_tokens: int) -> list[str]:
        """Split text into consecutive windows of at most max_tokens tokens.

        Windows do not overlap.
        """
        ...


class TiktokenCounter:
    """TokenCounter backed by a tiktoken encoding.

    The encoding is loaded on first use, since tiktoken may fetch it over
    the network.
    """

    def __init__(self, encoding_name: str = "cl100k_base") -> None:
        self.encoding_name = encoding_name
        self._encoding: tiktoken.Encoding | None = None

    @property
    def encoding(self) -> tiktoken.Encoding:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self.encoding_name)
        return self._encoding

    def count(self, text: str) -> int:
        return len(self.encoding.encode(text))

    def window(self, text: str, max_tokens: int) -> list[str]:
        tokens = self.encoding.encode(text)
        windows = []
        for start in range(0, len(tokens), max_tokens):
            piece = self.encoding.decode(tokens[start : start + max_tokens]).strip()
            if piece:
                windows.append(piece)
        return windows
