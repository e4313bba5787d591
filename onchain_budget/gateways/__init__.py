"""Provider gateways (server-side proxies for third-party APIs)"""

from .base import ProviderGateway
from .bank_gateway import MonoGateway
from .onchain_gateway import OnchainGateway
from .identity_gateway import EnsGateway

__all__ = ["ProviderGateway", "MonoGateway", "OnchainGateway", "EnsGateway"]
