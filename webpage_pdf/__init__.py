"""
Webpage PDF Service - render a URL to PDF with a remote headless browser.

Exposes a single POST /generate-pdf endpoint that connects to a
Browserless-style Chromium over WebSocket, loads the page, waits for
content and images to settle, and streams back the PDF.
"""

__version__ = "0.1.0"
