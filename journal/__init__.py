"""Lucidly journal core.

Dream records, the hosted-inference cascade, storage and auth adapters.
Nothing here depends on the web layer in ``backend/``.
"""
