"""Azure-shaped network synthesis."""

from .synthesizer import AzureSynthesizer, network_watcher_name, resource_group_name

__all__ = ["AzureSynthesizer", "network_watcher_name", "resource_group_name"]
