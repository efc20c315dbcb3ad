# luckyshot/retrieval/tokenizer.py

from enum import Enum
from typing import Callable, Dict, Iterable, List

# --------------------------------------------------------------------------------
# Extension → tokenizer kind. The set of kinds is closed; anything unknown is
# tokenized as generic text.
# --------------------------------------------------------------------------------


class TokenizerKind(str, Enum):
    CODE = "code"
    MARKUP = "markup"
    GENERIC = "generic"


CODE_EXTENSIONS = {
    "rs", "py", "pyi", "js", "mjs", "cjs", "ts", "jsx", "tsx", "java", "c", "h",
    "cc", "cpp", "cxx", "hpp", "hh", "go", "rb", "cs", "kt", "kts", "swift",
    "scala", "php", "sh", "bash", "zsh", "lua", "pl", "r", "m", "mm", "dart",
    "ex", "exs", "erl", "hs", "ml", "clj", "sql", "zig", "nim", "toml", "yaml",
    "yml", "json", "css", "scss",
}

MARKUP_EXTENSIONS = {"html", "htm", "xhtml", "xml", "svg", "xsd", "xsl", "xslt", "vue", "jsp", "plist"}

CODE_DELIMITERS = set("<>(){}[],;:\"'=?!")
GENERIC_DELIMITERS = set("()[]{},;:\"'.!?")


def kind_for_extension(extension: str) -> TokenizerKind:
    ext = (extension or "").lower().lstrip(".")
    if ext in CODE_EXTENSIONS:
        return TokenizerKind.CODE
    if ext in MARKUP_EXTENSIONS:
        return TokenizerKind.MARKUP
    return TokenizerKind.GENERIC


def tokenize_code(text: str) -> List[str]:
    """
    Tokenize source code.

    Splits on whitespace and CODE_DELIMITERS. `->` is kept as one token, `#`
    is dropped, a digit/'.' run starting with a digit is one numeric token
    (`10.5`), and a '.' after an identifier separates it from what follows.
    """
    tokens: List[str] = []
    current: List[str] = []

    def flush() -> None:
        if current:
            tokens.append("".join(current))
            current.clear()

    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c.isspace() or c in CODE_DELIMITERS or c == "#":
            flush()
        elif c.isdigit():
            # digits extend numbers and identifiers alike
            current.append(c)
        elif c == ".":
            if current and current[0].isdigit():
                current.append(c)
            elif not current and i + 1 < n and text[i + 1].isdigit():
                current.append(c)  # ".5"
            else:
                flush()
        elif c == "-":
            flush()
            if i + 1 < n and text[i + 1] == ">":
                tokens.append("->")
                i += 1
        else:
            current.append(c)
        i += 1
    flush()
    return tokens


def tokenize_markup(text: str) -> List[str]:
    """
    Tokenize tag-based markup: tag names, attribute names, quoted attribute
    values (as a single token) and text content. `=` and `/` are dropped.
    """
    tokens: List[str] = []
    current: List[str] = []

    def flush() -> None:
        if current:
            tokens.append("".join(current))
            current.clear()

    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c in "\"'":
            flush()
            end = text.find(c, i + 1)
            if end == -1:
                end = n
            value = text[i + 1:end]
            if value:
                tokens.append(value)
            i = end + 1
            continue
        if c.isspace() or c in "<>=/":
            flush()
        else:
            current.append(c)
        i += 1
    flush()
    return tokens


def tokenize_generic(text: str) -> List[str]:
    tokens: List[str] = []
    current: List[str] = []
    for c in text:
        if c.isspace() or c in GENERIC_DELIMITERS:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(c)
    if current:
        tokens.append("".join(current))
    return tokens


_TOKENIZERS: Dict[TokenizerKind, Callable[[str], List[str]]] = {
    TokenizerKind.CODE: tokenize_code,
    TokenizerKind.MARKUP: tokenize_markup,
    TokenizerKind.GENERIC: tokenize_generic,
}


def tokenize(text: str, extension: str = "") -> List[str]:
    """Tokenize `text` with the tokenizer selected by `extension`. Never raises."""
    return _TOKENIZERS[kind_for_extension(extension)](text)


def deduplicate(tokens: Iterable[str]) -> List[str]:
    """Drop repeated tokens, keeping first-occurrence order."""
    return list(dict.fromkeys(tokens))
