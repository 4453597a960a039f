"""Correlates language-server references with syntax-tree context."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from errors import CallmapError
from lsp.client import LanguageServerClient
from models.results import ResultEntry
from parse.analyzer import Analyzer
from parse.formatting import format_snippet
from scan.packages import default_search_paths
from scan.workspace import WorkspaceFilter
from settings.config import CallmapConfig

if TYPE_CHECKING:
    from models.definitions import DefinitionSite
    from models.references import ReferenceLocation

logger = logging.getLogger(__name__)


class ReferenceMatcher:
    """Finds call sites of package functions within a workspace.

    Definitions are located with the analyzer, their references are resolved
    by the language server, and each reference inside the workspace becomes
    a ResultEntry carrying its enclosing context and call text. Entries
    accumulate across ``find_references`` calls until the matcher is closed.

    Usage:
        with ReferenceMatcher(root) as matcher:
            matcher.find_references("pkg_a", "Greeter.*")
            matcher.sort()
            entries = matcher.entries
    """

    def __init__(
        self,
        root: str | Path,
        config: CallmapConfig | None = None,
        client: LanguageServerClient | None = None,
        analyzer: Analyzer | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.config = config if config is not None else CallmapConfig()
        self._client = client
        self._analyzer = (
            analyzer
            if analyzer is not None
            else Analyzer(default_search_paths(self.root, self.config.search_paths))
        )
        self._filter = WorkspaceFilter(
            self.root,
            exclude_patterns=self.config.exclude,
            respect_gitignore=self.config.respect_gitignore,
            nested_gitignore=self.config.nested_gitignore,
        )
        self._entries: list[ResultEntry] = []

    def __enter__(self) -> ReferenceMatcher:
        self.open()
        return self

    def __exit__(self, exc_type: object, exc: BaseException | None, tb: object) -> None:
        if exc is None:
            self.close()
            return
        try:
            self.close()
        except (CallmapError, OSError) as close_exc:
            logger.warning("error closing language server: %s", close_exc)

    @property
    def entries(self) -> tuple[ResultEntry, ...]:
        return tuple(self._entries)

    def open(self) -> None:
        """Start a language server session unless a client was supplied."""
        self._session()

    def _session(self) -> LanguageServerClient:
        if self._client is not None:
            return self._client
        client = LanguageServerClient(
            self.root,
            self.config.server_command,
            request_timeout=self.config.request_timeout,
        )
        client.start()
        self._client = client
        return client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def find_references(self, package: str, *patterns: str) -> list[ResultEntry]:
        """Collect call sites of the functions in ``package`` matching ``patterns``.

        Args:
            package: Dotted package or module identifier
            patterns: Function globs or ``Class.method`` globs

        Returns:
            The entries added by this call, in discovery order. They are also
            appended to ``entries``.

        Raises:
            CallmapError: On any resolution, parse, position or protocol
                failure. Entries found before the failure are kept.
        """
        client = self._session()

        added: list[ResultEntry] = []
        for definition in self._analyzer.find_definitions(package, *patterns):
            logger.debug(
                "found %s -> %s at %s:%d:%d",
                package,
                definition.display_name(),
                definition.file,
                definition.line,
                definition.column,
            )
            for reference in self._references_to(client, definition):
                entry = self._entry_for(reference)
                self._entries.append(entry)
                added.append(entry)
        return added

    def sort(self) -> None:
        """Order entries by (file, line), keeping discovery order for ties."""
        self._entries.sort(key=lambda entry: (entry.file, entry.line))

    def _references_to(
        self, client: LanguageServerClient, definition: DefinitionSite
    ) -> list[ReferenceLocation]:
        encoding = client.position_encoding
        column = self._analyzer.protocol_column(
            definition.file, definition.line, definition.column, encoding
        )
        references = client.references(definition.file, definition.line, column)

        kept: list[ReferenceLocation] = []
        for reference in references:
            if not self._filter.contains(reference.path):
                logger.debug(
                    "skipping %s:%d outside workspace",
                    reference.path,
                    reference.start_line,
                )
                continue
            reference = self._analyzer.normalize_reference(reference, encoding)
            if self._analyzer.is_binding_site(
                reference.path, reference.start_line, reference.start_column
            ):
                logger.debug(
                    "skipping binding site %s:%d:%d",
                    reference.path,
                    reference.start_line,
                    reference.start_column,
                )
                continue
            kept.append(reference)
        return kept

    def _entry_for(self, reference: ReferenceLocation) -> ResultEntry:
        line, column = reference.start_line, reference.start_column
        enclosing = self._analyzer.enclosing_context(reference.path, line, column)
        source = self._analyzer.call_expression_at(reference.path, line, column)
        return ResultEntry(
            file=reference.path,
            line=line,
            column=column,
            enclosing=enclosing,
            source=source,
            pretty_source=format_snippet(source),
        )


__all__ = ["ReferenceMatcher"]
