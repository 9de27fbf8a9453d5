"""GCP-shaped network synthesis."""

from .synthesizer import GcpSynthesizer

__all__ = ["GcpSynthesizer"]
