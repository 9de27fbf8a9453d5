"""Provider synthesizers.

One implementation per provider, selected by the intent's `provider` field:

    from network_tools.synthesizers import synthesize
    topology = synthesize(intent, address_plan)
"""

from typing import Dict, Type

from network_tools.model import AddressPlan, NetworkIntent, NetworkTopology, Provider

from .aws import AwsSynthesizer
from .azure import AzureSynthesizer
from .common import Synthesizer
from .gcp import GcpSynthesizer

SYNTHESIZERS: Dict[Provider, Type[Synthesizer]] = {
    Provider.AWS: AwsSynthesizer,
    Provider.AZURE: AzureSynthesizer,
    Provider.GCP: GcpSynthesizer,
}


def get_synthesizer(provider: Provider) -> Synthesizer:
    try:
        return SYNTHESIZERS[Provider(provider)]()
    except (KeyError, ValueError) as e:
        raise ValueError(f"No synthesizer for provider '{provider}'") from e


def synthesize(intent: NetworkIntent, address_plan: AddressPlan) -> NetworkTopology:
    """Build the provider resource graph for `intent`."""
    return get_synthesizer(intent.provider).synthesize(intent, address_plan)


__all__ = [
    "AwsSynthesizer",
    "AzureSynthesizer",
    "GcpSynthesizer",
    "SYNTHESIZERS",
    "Synthesizer",
    "get_synthesizer",
    "synthesize",
]
