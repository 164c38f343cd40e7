from pathlib import Path

PLAIN = "plain"

_LANGUAGE_ALIASES = {
    "js": "javascript",
    "ecmascript": "javascript",
    "node": "javascript",
    "ts": "typescript",
    "py": "python",
    "python3": "python",
    "c++": "cpp",
    "cxx": "cpp",
    "golang": "go",
    "rs": "rust",
    "htm": "html",
    "xhtml": "html",
    "md": "markdown",
    "bas": "basic",
    "asm": "assembly",
    "aea": "agc",
}

_EXTENSION_LANGUAGE_MAP = {
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
    ".pyw": "python",
    ".pyx": "python",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".hh": "cpp",
    ".hxx": "cpp",
    ".rs": "rust",
    ".go": "go",
    ".html": "html",
    ".htm": "html",
    ".xhtml": "html",
    ".css": "css",
    ".scss": "css",
    ".sass": "css",
    ".less": "css",
    ".json": "json",
    ".jsonc": "json",
    ".xml": "xml",
    ".svg": "xml",
    ".xsl": "xml",
    ".xslt": "xml",
    ".sql": "sql",
    ".md": "markdown",
    ".markdown": "markdown",
    # Historical languages
    ".for": "fortran",
    ".f": "fortran",
    ".f77": "fortran",
    ".f90": "fortran",
    ".f95": "fortran",
    ".ftn": "fortran",
    ".cob": "cobol",
    ".cbl": "cobol",
    ".bas": "basic",
    ".asm": "assembly",
    ".s": "assembly",
    ".agc": "agc",
    ".aea": "agc",
    ".mad": "mad",
}

SUPPORTED_LANGUAGES = frozenset(_EXTENSION_LANGUAGE_MAP.values()) | {PLAIN}


def normalize_language(language: str | None) -> str:
    """Canonical language name; anything without dedicated support is ``plain``."""
    if not language:
        return PLAIN
    normalized = language.strip().lower()
    resolved = _LANGUAGE_ALIASES.get(normalized, normalized)
    return resolved if resolved in SUPPORTED_LANGUAGES else PLAIN


def detect_language_from_path(file_path: Path) -> str:
    return _EXTENSION_LANGUAGE_MAP.get(file_path.suffix.lower(), PLAIN)


def resolve_language(language: str | None, file_path: Path | None) -> str:
    if language:
        return normalize_language(language)
    if file_path:
        return detect_language_from_path(file_path)
    return PLAIN
