"""Lucidly — FastAPI backend.

REST endpoints for the dream journal: CRUD, hosted-model analysis and
audio transcription. All domain logic lives in the root `journal/` package.
"""
