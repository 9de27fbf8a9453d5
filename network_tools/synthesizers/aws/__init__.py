"""AWS-shaped network synthesis."""

from .synthesizer import AwsSynthesizer

__all__ = ["AwsSynthesizer"]
