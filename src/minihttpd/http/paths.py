"""
=============================================================================
REQUEST PATH → LOCAL FILE
=============================================================================

    "/"                     ──► "/index.html"              default document
    "/docs/a.txt?x=1"       ──► "/docs/a.txt"              query dropped
    "/docs/a.txt"           ──► wwwroot + "/docs/a.txt"    separators → os.sep
                                   │
                                   ├── exists?    os.path.isfile
                                   └── mime type? MimeTable.lookup

=============================================================================
PATH TRAVERSAL
=============================================================================

The mapping is plain string concatenation. Nothing canonicalizes the
result, so ".." segments climb out of the document root:

    GET /../secret.txt  ──►  wwwroot/../secret.txt

That is the server's long-standing behavior and stays the default. The
block_traversal option adds a containment check on top: the real path
(symlinks and ".." resolved) must lie inside the real document root, or
the file is reported as missing and the client gets a 404.

=============================================================================
"""

import os
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .mime_types import MimeTable

if TYPE_CHECKING:
    from ..config import ServerConfig


logger = logging.getLogger(__name__)


@dataclass
class ResolvedFile:
    """
    Result of mapping a request path to the filesystem.

    Attributes:
        url: The request path after default-document substitution
             (query string included, as it appears in the log).
        local_path: Where the file would be on disk.
        exists: Whether a regular file is there.
        mime_type: Configured type for its extension, "" if unlisted.
    """

    url: str
    local_path: str
    exists: bool
    mime_type: str

    @property
    def servable(self) -> bool:
        """A 200 needs both a file and a known type; anything else is a 404."""
        return self.exists and bool(self.mime_type)


class PathResolver:
    """
    Maps request paths to files under the document root.

    Usage:
        resolver = PathResolver(config)
        resolved = resolver.resolve("/")
        resolved.local_path   # 'wwwroot/index.html'
    """

    def __init__(self, config: "ServerConfig"):
        self.document_root = config.document_root
        self.default_document = config.default_document
        self.block_traversal = config.block_traversal
        self.mime_table = MimeTable(config.mime_types)

    def resolve(self, path: str) -> ResolvedFile:
        """Map a request path to a ResolvedFile."""
        url = path
        if url == "/":
            url += self.default_document

        local_path = self.map_to_local(url.split("?", 1)[0])

        exists = os.path.isfile(local_path)
        if exists and self.block_traversal and not self.is_inside_root(local_path):
            logger.warning(f"Path escapes document root: {url}")
            exists = False

        return ResolvedFile(
            url=url,
            local_path=local_path,
            exists=exists,
            mime_type=self.mime_table.lookup(local_path),
        )

    def map_to_local(self, path: str) -> str:
        """Append the request path to the document root, verbatim."""
        return self.document_root + path.replace("/", os.sep)

    def is_inside_root(self, local_path: str) -> bool:
        root = os.path.realpath(self.document_root)
        target = os.path.realpath(local_path)
        return os.path.commonpath([root, target]) == root
