"""
Network configuration for the Gelato relay SDK.

Maps chain ids to the contracts that verify signed relay requests:
the ``GelatoRelayForwarder`` used for forward requests and the
``GelatoMetaBox`` used for meta-transactions.
"""
import importlib.resources
import json
import logging
import os
from typing import Any, Dict, Optional

from .types import to_checksum

logger = logging.getLogger(__name__)

DEFAULT_RELAY_URL = "https://relay.gelato.digital/"

RELAY_URL_ENV = "GELATO_RELAY_URL"
NETWORKS_FILE_ENV = "GELATO_NETWORKS_FILE"


class NetworkConfig:
    """Chain id to contract address lookup, loaded once per process."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load network configurations.

        Reads the file named by ``GELATO_NETWORKS_FILE`` if set, otherwise
        the ``networks.json`` bundled with the package.

        Returns:
            Dictionary of chain id (as string) to network configuration

        Raises:
            ValueError: If the networks file cannot be read or parsed
        """
        if cls._networks_cache is not None:
            return cls._networks_cache

        override = os.environ.get(NETWORKS_FILE_ENV)
        try:
            if override:
                logger.debug(f"Loading networks from {override}")
                with open(override, "r") as f:
                    networks = json.load(f)
            else:
                resource = importlib.resources.files("gelato_sdk").joinpath("networks.json")
                networks = json.loads(resource.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Failed to load network configuration: {e}") from e

        cls._networks_cache = networks
        return networks

    @classmethod
    def get_network(cls, chain_id: int) -> Dict[str, Any]:
        """
        Get configuration for a chain.

        Args:
            chain_id: Chain id to look up

        Returns:
            Network configuration dictionary

        Raises:
            ValueError: If the chain is not configured
        """
        networks = cls.load_networks()
        key = str(chain_id)
        if key not in networks:
            raise ValueError(f"Network for chain id {chain_id} not found in configuration")
        return networks[key]

    @classmethod
    def _contract(cls, chain_id: int, key: str) -> Optional[str]:
        network = cls.load_networks().get(str(chain_id))
        if not network or not network.get(key):
            return None
        return to_checksum(network[key])

    @classmethod
    def get_forwarder(cls, chain_id: int) -> Optional[str]:
        """Get the forwarder contract for a chain id, if one is known."""
        return cls._contract(chain_id, "forwarder")

    @classmethod
    def get_meta_box(cls, chain_id: int) -> Optional[str]:
        """Get the meta box contract for a chain id, if one is known."""
        return cls._contract(chain_id, "metaBox")

    @classmethod
    def reset(cls) -> None:
        """Drop the cached configuration so the next lookup reloads it."""
        cls._networks_cache = None


def relay_url() -> str:
    """Base URL of the relay service, honoring ``GELATO_RELAY_URL``."""
    return os.environ.get(RELAY_URL_ENV) or DEFAULT_RELAY_URL
