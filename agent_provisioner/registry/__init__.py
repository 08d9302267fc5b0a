from agent_provisioner.registry.models import DetectionConfig, Provider
from agent_provisioner.registry.providers import ProviderRegistry

__all__ = ["DetectionConfig", "Provider", "ProviderRegistry"]
