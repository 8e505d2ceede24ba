"""Configuration migration system for proxyconf.

Tracks the document's config-version and applies migration steps in
ascending order. Each step is a module named `m_NNN_description.py`
exposing a `STEP` record; the default registry lists them explicitly.
"""
