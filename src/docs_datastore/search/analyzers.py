"""Text analysis for section titles, body nodes and queries.

An analyzer turns raw text into ``Token`` objects that remember the slice of
the source they came from. The offsets are what the highlighter later uses,
so filters may rewrite a token's ``text`` but never its ``start_char`` or
``end_char``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
from functools import partial
import re


@dataclass(slots=True)
class Token:
    text: str
    position: int
    start_char: int
    end_char: int

    @property
    def length(self) -> int:
        return self.end_char - self.start_char


Analyzer = Callable[[str], list[Token]]
TokenFilter = Callable[[Iterable[Token]], Iterator[Token]]

# lunr's English stopword list
DEFAULT_STOPWORDS = frozenset(
    """
    a able about across after all almost also am among an and any are as at be because been but by
    can cannot could dear did do does either else ever every for from get got had has have he her
    hers him his how however i if in into is it its just least let like likely may me might most
    must my neither no nor not of off often on only or other our own rather said say says she
    should since so some than that the their them then there these they this tis to too twas us
    wants was we were what when where which while who whom why will with would yet you your
    """.split()
)

# (suffix, replacement, shortest stem allowed); the first applicable rule wins
_STEM_RULES: tuple[tuple[str, str, int], ...] = (
    ("ization", "ize", 2), ("ational", "ate", 2), ("fulness", "ful", 2), ("ousness", "ous", 2),
    ("iveness", "ive", 2), ("tional", "tion", 2), ("biliti", "ble", 2), ("entli", "ent", 2),
    ("izer", "ize", 2), ("ator", "ate", 2), ("ation", "ate", 2), ("ness", "", 2), ("ment", "", 2),
    ("ingly", "", 3), ("edly", "", 3), ("ing", "", 3), ("ed", "", 3), ("ly", "", 3), ("es", "", 3),
    ("s", "", 3),
)
_POSSESSIVES = ("'s", "’s")


class RegexTokenizer:
    """Split text into word tokens; inner apostrophes stay inside the word (``here's``)."""

    def __init__(self, pattern: str = r"\w+(?:['’]\w+)*") -> None:
        self.pattern = re.compile(pattern)

    def __call__(self, text: str) -> Iterator[Token]:
        return (
            Token(match.group(), idx, match.start(), match.end())
            for idx, match in enumerate(self.pattern.finditer(text))
        )


def lowercase(tokens: Iterable[Token]) -> Iterator[Token]:
    for token in tokens:
        yield token if token.text.islower() else replace(token, text=token.text.lower())


class StopFilter:
    def __init__(self, stopwords: Iterable[str] | None = None) -> None:
        words = DEFAULT_STOPWORDS if stopwords is None else stopwords
        self.stopwords = frozenset(word.lower() for word in words)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        return (token for token in tokens if token.text.lower() not in self.stopwords)


def stem(word: str) -> str:
    """Light English suffix stripping, close enough for matching docs vocabulary."""

    word = word.lower()
    if word.endswith(_POSSESSIVES):
        word = word[:-2]
    for suffix, replacement, min_stem in _STEM_RULES:
        if word.endswith(suffix) and len(word) - len(suffix) >= min_stem:
            return word[: -len(suffix)] + replacement
    return word


class StemFilter:
    def __init__(self, stemmer: Callable[[str], str] = stem) -> None:
        self.stemmer = stemmer

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        return (replace(token, text=self.stemmer(token.text)) for token in tokens)


class AnalyzerPipeline:
    """Tokenize, run each filter in turn, then renumber the surviving tokens."""

    def __init__(self, tokenizer: Callable[[str], Iterable[Token]], filters: Sequence[TokenFilter] = ()) -> None:
        self.tokenizer = tokenizer
        self.filters = tuple(filters)

    def __call__(self, text: str) -> list[Token]:
        if not text:
            return []
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        kept = (token for token in stream if token.text)
        return [replace(token, position=idx) for idx, token in enumerate(kept)]


class StandardAnalyzer(AnalyzerPipeline):
    """Lowercased words without stopwords, stemmed unless ``apply_stemming`` is off."""

    def __init__(self, *, stopwords: Iterable[str] | None = None, apply_stemming: bool = True) -> None:
        filters: list[TokenFilter] = [lowercase, StopFilter(stopwords)]
        if apply_stemming:
            filters.append(StemFilter())
        super().__init__(RegexTokenizer(), filters)


class PlainAnalyzer(AnalyzerPipeline):
    """Lowercased words only. Used for wildcard query prefixes."""

    def __init__(self) -> None:
        super().__init__(RegexTokenizer(), [lowercase])


_REGISTRY: dict[str, Callable[[], Analyzer]] = {
    "default": StandardAnalyzer,
    "english": StandardAnalyzer,
    "english-nostem": partial(StandardAnalyzer, apply_stemming=False),
    "plain": PlainAnalyzer,
}


def available_analyzers() -> list[str]:
    return sorted(_REGISTRY)


def get_analyzer(name: str | None) -> Analyzer:
    """Build the analyzer registered under ``name``; ``None`` selects ``default``."""

    key = "default" if name is None else name.lower()
    try:
        factory = _REGISTRY[key]
    except KeyError:
        raise ValueError(f"Unknown analyzer '{name}'. Available: {available_analyzers()}") from None
    return factory()
