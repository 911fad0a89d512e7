"""Inference module — hosted-model cascade with canned fallbacks."""

from journal.inference.analyzer import DreamAnalyzer, ModelLists
from journal.inference.huggingface import HuggingFaceClient, ModelCascade

__all__ = ["DreamAnalyzer", "HuggingFaceClient", "ModelCascade", "ModelLists"]
