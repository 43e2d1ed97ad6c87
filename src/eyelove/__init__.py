"""EyeLove - dark mode for any page, computed from the page's own colors.

Two strategies run together:
- Theme variables: well-known CSS custom properties are darkened into one
  adopted stylesheet
- Inline rewriting: per-element background, text and icon colors are
  replaced with `!important` overrides and can be restored exactly

Main entry points:
- DarkModeController: Activates and deactivates the theme on a document
- PageBridge: Applies enable/disable messages and the initial settings
- load_document / parse_html / serialize: In-memory pages from HTML files

Configuration:
- EngineConfig: Markers, transform constants, fallbacks and catalogs
"""

from .bridge import PageBridge
from .config import EngineConfig, load_config
from .controller import DarkModeController, EngineState
from .loader import load_document, parse_html, serialize

__version__ = "0.3.0"

__all__ = [
    "DarkModeController",
    "EngineConfig",
    "EngineState",
    "PageBridge",
    "__version__",
    "load_config",
    "load_document",
    "parse_html",
    "serialize",
]
