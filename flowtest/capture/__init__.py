"""Live-page element capture (Playwright)."""

from flowtest.capture.elements import ElementCapture, make_element_node

__all__ = ["ElementCapture", "make_element_node"]
