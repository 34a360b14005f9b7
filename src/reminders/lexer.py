# ambrogio-reminders - Italian Reminder Engine and Scheduler
# Copyright (c) 2026 The ambrogio-reminders authors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Licensing inquiries: see the ambrogio-reminders project page

"""
Lexer Module

Splits a reminder time expression into classified tokens. Tokenization is
total: substrings that match no known shape become opaque word tokens.
Elisions are split ("dall'11" -> "dall", "11").
"""

import re
import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TokenKind(str, Enum):
    """Token categories."""

    NUMBER = "number"
    TIME = "time"  # 14:30, 8.20, 10:15:30
    DATE = "date"  # 13/09/2024, 12-05, 13.09.2024
    WORD = "word"
    PUNCT = "punct"


@dataclass(frozen=True)
class Token:
    """A classified slice of the input text."""

    text: str
    kind: TokenKind
    offset: int  # diagnostics only

    @property
    def norm(self) -> str:
        """Lowercased text with accents stripped ("Lunedì" -> "lunedi")."""
        decomposed = unicodedata.normalize("NFKD", self.text)
        return "".join(c for c in decomposed if not unicodedata.combining(c)).lower()

    @property
    def number(self) -> Optional[int]:
        return int(self.text) if self.kind is TokenKind.NUMBER else None


# Digit runs longer than any quantity become opaque words
_TOKEN_RE = re.compile(
    r"(?P<date>\d{1,2}[/-]\d{1,2}(?:[/-]\d{2,4})?|\d{1,2}\.\d{1,2}\.\d{4})"
    r"|(?P<time>\d{1,2}[:.]\d{2}(?:[:.]\d{2})?)"
    r"|(?P<number>\d{1,18}(?!\d))"
    r"|(?P<word>[^\W\d_]+)"
    r"|(?P<punct>[,;])"
    r"|(?P<other>\d+|_+|[^\s\w'’,;]+)"
)


def tokenize(text: str) -> list[Token]:
    """
    Split text into tokens.

    Args:
        text: Raw time expression (any string, possibly empty)

    Returns:
        Ordered list of tokens; whitespace and apostrophes are dropped
    """
    tokens = []
    for match in _TOKEN_RE.finditer(text or ""):
        group = match.lastgroup
        if group == "other":
            kind = TokenKind.WORD
        else:
            kind = TokenKind(group)
        tokens.append(Token(text=match.group(), kind=kind, offset=match.start()))
    return tokens
