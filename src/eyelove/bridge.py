"""Page-side listener that connects the message bus to the controller."""

from __future__ import annotations

from typing import Any

from .controller import DarkModeController
from .exceptions import MessageError
from .host import BootstrapCache
from .logger import get_logger
from .messages import UpdateBodyClass, parse_message, parse_partial_settings

logger = get_logger()


class PageBridge:
    """Routes enable/disable signals for one page to its controller.

    Only messages from the page's own extension are acted on. Startup state
    comes from the settings response, falling back to the bootstrap cache
    when the query fails.
    """

    def __init__(
        self,
        controller: DarkModeController,
        extension_id: str,
        cache: BootstrapCache | None = None,
    ):
        self.controller = controller
        self.extension_id = extension_id
        self.cache = cache if cache is not None else controller.cache

    def handle_message(self, message: Any, sender_id: str | None) -> bool:
        """Handle one incoming message.

        Returns:
            Always False: the page never answers asynchronously
        """
        if sender_id != self.extension_id:
            logger.warning(f"Ignoring message from unexpected sender {sender_id!r}")
            return False

        parsed = parse_message(message)
        if parsed is None:
            return False

        if isinstance(parsed, UpdateBodyClass):
            enabled = parsed.payload.enabled
            logger.checks(f"updateBodyClass received (enabled={enabled})")
            if enabled is True:
                self.controller.activate()
            elif enabled is False:
                self.controller.deactivate()
        else:
            logger.debug(f"Unhandled message action {parsed.action!r}")
        return False

    def cached_enabled(self) -> bool:
        """True if the bootstrap cache says the theme was last enabled."""
        if self.cache is None:
            return False
        key = self.controller.config.markers.cache_key
        return self.cache.get_item(key) == "true"

    def apply_initial_state(self, response: Any, error: str | None = None) -> None:
        """Apply the answer to the initial-state query.

        Args:
            response: Settings mapping returned by the settings collaborator;
                `None` or a mapping without `enabled` means disabled
            error: Transport error message if the query failed
        """
        if error is not None:
            logger.warning(f"Initial state query failed ({error}); using cached state")
            self.controller.set_enabled(self.cached_enabled())
            return

        try:
            settings = parse_partial_settings(response)
        except MessageError as e:
            logger.warning(f"{e}; enabling by default")
            self.controller.activate()
            return

        # Only an explicit `enabled: true` turns the theme on
        self.controller.set_enabled(settings.enabled is True)
