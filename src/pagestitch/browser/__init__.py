"""Browser automation modules (Playwright).

``session`` owns the shared browser and per-URL contexts, ``overlays``
prepares each page and keeps popups out of it, ``readiness`` decides when
dynamic content has settled, and ``capture`` takes the full-page snapshot.
``observer`` provides the DOM-change subscription the other modules build on.
"""
