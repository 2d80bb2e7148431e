"""Template file retrieval from file:// URIs"""

from pathlib import Path

from stacksmith.constants import FILE_URI_SCHEME
from stacksmith.exceptions import ConfigurationError


class FileSystemResolver:
    """Reads template bodies from the local file system"""

    def resolve(self, uri: str) -> str:
        """
        Read the content behind a template URI.

        Args:
            uri: A file:// URI or a plain path

        Returns:
            File content

        Raises:
            ConfigurationError: If the URI uses another scheme or the file is unreadable
        """
        if "://" in uri and not uri.startswith(FILE_URI_SCHEME):
            raise ConfigurationError(
                f"Unsupported template URI: {uri}", "Only file:// templates are supported"
            )

        path = Path(uri[len(FILE_URI_SCHEME):] if uri.startswith(FILE_URI_SCHEME) else uri)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigurationError(f"Template file not found: {path}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read template file: {path}", str(e))
