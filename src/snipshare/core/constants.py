"""Shared constants for SnipShare file handling and raw rendering."""

from __future__ import annotations

from typing import Final

DEFAULT_ALLOWED_FILE_TYPES: Final[str] = (
    ".txt,.md,.pdf,.json,.csv,.log,.xml,.yaml,.yml,.html,.css,.js,.ts,.py,.sh,.sql,"
    ".png,.jpg,.jpeg,.gif,.webp,.svg,.zip"
)

EXTENSION_TO_MIME: Final[dict[str, str]] = {
    # Text / documents
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".pdf": "application/pdf",
    ".json": "application/json",
    ".csv": "text/csv",
    ".log": "text/plain",
    ".xml": "application/xml",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".ts": "application/typescript",
    ".py": "text/x-python",
    ".sh": "application/x-sh",
    ".sql": "application/sql",
    ".rtf": "application/rtf",
    # Office
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".odt": "application/vnd.oasis.opendocument.text",
    ".ods": "application/vnd.oasis.opendocument.spreadsheet",
    ".odp": "application/vnd.oasis.opendocument.presentation",
    # Archives
    ".zip": "application/zip",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
    ".7z": "application/x-7z-compressed",
    ".rar": "application/vnd.rar",
    ".bz2": "application/x-bzip2",
    ".torrent": "application/x-bittorrent",
    # Source code
    ".jsx": "text/jsx",
    ".tsx": "text/tsx",
    ".vue": "text/x-vue",
    ".svelte": "text/x-svelte",
    ".java": "text/x-java-source",
    ".go": "text/x-go",
    ".rs": "text/x-rustsrc",
    ".rb": "text/x-ruby",
    ".php": "application/x-httpd-php",
    ".c": "text/x-csrc",
    ".cpp": "text/x-c++src",
    ".h": "text/x-chdr",
    ".hpp": "text/x-c++hdr",
    # Config files
    ".ini": "text/plain",
    ".toml": "text/plain",
    ".env": "text/plain",
    ".conf": "text/plain",
    ".cfg": "text/plain",
    ".bat": "application/x-bat",
    ".ps1": "application/x-powershell",
    # Media
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
    # Fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    # Certificates
    ".key": "application/x-pem-file",
    ".pem": "application/x-pem-file",
    ".crt": "application/x-x509-ca-cert",
    ".cer": "application/x-x509-ca-cert",
    # Patches and build files
    ".diff": "text/x-diff",
    ".patch": "text/x-diff",
    ".dockerfile": "text/plain",
    ".makefile": "text/plain",
}

LANGUAGE_TO_CONTENT_TYPE: Final[dict[str, str]] = {
    "javascript": "application/javascript; charset=utf-8",
    "typescript": "application/typescript; charset=utf-8",
    "json": "application/json; charset=utf-8",
    "html": "text/html; charset=utf-8",
    "xml": "application/xml; charset=utf-8",
    "css": "text/css; charset=utf-8",
    "markdown": "text/markdown; charset=utf-8",
    "yaml": "text/yaml; charset=utf-8",
    "sql": "application/sql; charset=utf-8",
}

DEFAULT_RAW_CONTENT_TYPE: Final[str] = "text/plain; charset=utf-8"
DEFAULT_MIME_TYPE: Final[str] = "application/octet-stream"


def file_extension(file_name: str) -> str:
    """Return the lower-cased extension of `file_name` including the dot, or ''."""
    dot = file_name.rfind(".")
    if dot == -1:
        return ""
    return file_name[dot:].lower()


def raw_content_type(language: str) -> str:
    return LANGUAGE_TO_CONTENT_TYPE.get(language, DEFAULT_RAW_CONTENT_TYPE)
