"""Activation lifecycle for one document."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from .config import EngineConfig
from .exceptions import UnsupportedEnvironmentError
from .host import (
    ELEMENT_NODE,
    BootstrapCache,
    Document,
    Element,
    MutationRecord,
    MutationWatcher,
    StyleSheet,
)
from .logger import get_logger
from .rewriter import RewriteStats, StyleRewriter
from .variables import build_stylesheet, generate

logger = get_logger()


class EngineState(str, Enum):
    """Controller state."""

    INACTIVE = "inactive"
    ACTIVE = "active"


class DarkModeController:
    """Turns the dark theme on and off for a document.

    The controller owns the single adopted stylesheet and the single mutation
    watcher for its document. Activation and deactivation are idempotent, and
    deactivation puts every touched element back the way it was.
    """

    def __init__(
        self,
        document: Document,
        config: EngineConfig | None = None,
        cache: BootstrapCache | None = None,
    ):
        """Initialize the controller.

        Args:
            document: Page to theme
            config: Engine configuration (defaults apply when omitted)
            cache: Store the first-paint script reads the enabled flag from
        """
        self.document = document
        self.config = config or EngineConfig()
        self.cache = cache
        self.rewriter = StyleRewriter(self.config)
        self._state = EngineState.INACTIVE
        self._sheet: StyleSheet | None = None
        self._watcher: MutationWatcher | None = None

        # Detected once; without adopted stylesheets only inline rewriting runs
        self.stylesheets_supported = document.supports_adopted_stylesheets
        if not self.stylesheets_supported:
            logger.warning(
                "Adopted stylesheets are not supported; theme variables will not be overridden"
            )

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is EngineState.ACTIVE

    def set_enabled(self, enabled: bool) -> None:
        """Activate or deactivate."""
        if enabled:
            self.activate()
        else:
            self.deactivate()

    def activate(self) -> None:
        """Apply the dark theme. Does nothing if already active."""
        if self.is_active:
            logger.debug("Already active")
            return

        body = self.document.body
        body.add_class(self.config.markers.body_class)

        if self.stylesheets_supported:
            self._install_stylesheet()

        stats = self.rewriter.process(self.rewriter.collect_targets(self.document.document_element))
        logger.changes(f"Activated: {stats.summary()}")

        self._watcher = self.document.create_mutation_watcher(self._on_mutations)
        self._watcher.observe(body, child_list=True, subtree=True)

        self._state = EngineState.ACTIVE
        self._write_cache(True)

    def deactivate(self) -> None:
        """Remove every trace of the dark theme. Does nothing if inactive."""
        if not self.is_active:
            logger.debug("Already inactive")
            return

        if self._watcher is not None:
            self._watcher.disconnect()
            self._watcher = None

        root = self.document.document_element
        self.rewriter.restore(self.rewriter.styled_elements(root))

        self.document.body.remove_class(self.config.markers.body_class)

        if self._sheet is not None and self.stylesheets_supported:
            self.document.adopted_style_sheets = [
                sheet for sheet in self.document.adopted_style_sheets if sheet is not self._sheet
            ]

        self._state = EngineState.INACTIVE
        logger.changes("Deactivated")
        self._write_cache(False)

    def _install_stylesheet(self) -> None:
        """Write the variable overrides into the adopted sheet, attaching it once."""
        root_style = self.document.document_element.computed_style()
        overrides = generate(root_style, self.config.variables, self.config.transform)
        text = build_stylesheet(overrides, self.config)

        try:
            if self._sheet is None:
                self._sheet = self.document.create_style_sheet()
            self._sheet.replace_sync(text)
            adopted = self.document.adopted_style_sheets
            if not any(sheet is self._sheet for sheet in adopted):
                self.document.adopted_style_sheets = [*adopted, self._sheet]
        except UnsupportedEnvironmentError as e:
            self.stylesheets_supported = False
            logger.warning(f"Could not install theme stylesheet: {e}")
            return

        logger.changes(f"Theme stylesheet installed with {len(overrides)} variable overrides")

    def _on_mutations(self, records: Sequence[MutationRecord]) -> None:
        """Style inserted elements and their descendants in one pass."""
        targets: list[Element] = []
        seen: set[int] = set()
        for record in records:
            if record.type != "childList":
                continue
            for node in record.added_nodes:
                if node.node_type != ELEMENT_NODE:
                    continue
                for element in self.rewriter.collect_targets(node):  # type: ignore[arg-type]
                    if id(element) not in seen:
                        seen.add(id(element))
                        targets.append(element)

        if targets:
            stats: RewriteStats = self.rewriter.process(targets)
            logger.checks(f"Inserted content: {stats.summary()}")

    def _write_cache(self, enabled: bool) -> None:
        if self.cache is None:
            return
        self.cache.set_item(self.config.markers.cache_key, "true" if enabled else "false")
