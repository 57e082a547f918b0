"""Ledger configuration.

Vaults that were deployed outside the registry, or that were indexed with custom
handlers before the registry picked them up, are described as :py:class:`VaultDeployment`.

Configuration is a JSON file:

.. code-block:: json

    {
        "chain_id": 250,
        "registries": ["0x727fe1759430df13655ddb0731de0d0fde929b04"],
        "deployments": [
            {
                "name": "ftmYvUSDCVault",
                "address": "0xef0210eb96c7eb36af8ed1c20306462764935607",
                "registry": "0x727fe1759430df13655ddb0731de0d0fde929b04",
                "classification": "Experimental",
                "api_version": "0.4.2",
                "end_block": null
            }
        ]
    }

The file path is passed in, or read from the ``YEARN_LEDGER_CONFIG`` environment variable.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from yearn_ledger.constants import ENDORSED, EXPERIMENTAL

#: Environment variable pointing to the configuration file
CONFIG_ENV_VAR = "YEARN_LEDGER_CONFIG"

#: Environment variable for the node used for contract reads
JSON_RPC_ENV_VAR = "JSON_RPC_URL"


@dataclass(slots=True, frozen=True)
class VaultDeployment:
    """One vault indexed with its own handlers."""

    #: Label used in log lines
    name: str

    #: Vault address, lowercased
    address: str

    #: Registry to attach the vault to. ``None`` for registry-less deployments.
    registry: str | None

    classification: str

    api_version: str

    #: Stop handling at this block, a successor took over. ``None`` for no cutover.
    end_block: int | None = None

    #: Register a vault data source when the vault is created
    create_template: bool = False

    def __post_init__(self):
        assert self.address.startswith("0x"), f"Bad vault address {self.address}"
        assert self.classification in (ENDORSED, EXPERIMENTAL), f"Unknown classification {self.classification}"
        # Frozen dataclass, so bypass __setattr__
        object.__setattr__(self, "address", self.address.lower())
        if self.registry:
            object.__setattr__(self, "registry", self.registry.lower())

    @staticmethod
    def from_dict(data: dict) -> "VaultDeployment":
        return VaultDeployment(
            name=data["name"],
            address=data["address"],
            registry=data.get("registry"),
            classification=data.get("classification", EXPERIMENTAL),
            api_version=data["api_version"],
            end_block=data.get("end_block"),
            create_template=data.get("create_template", False),
        )


@dataclass(slots=True)
class LedgerConfig:
    chain_id: int

    #: Registry contracts whose events we follow
    registries: list[str] = field(default_factory=list)

    deployments: list[VaultDeployment] = field(default_factory=list)

    #: JSON-RPC node for contract reads
    json_rpc_url: str | None = None

    @staticmethod
    def from_dict(data: dict) -> "LedgerConfig":
        return LedgerConfig(
            chain_id=int(data["chain_id"]),
            registries=[r.lower() for r in data.get("registries", [])],
            deployments=[VaultDeployment.from_dict(d) for d in data.get("deployments", [])],
            json_rpc_url=data.get("json_rpc_url"),
        )

    @staticmethod
    def read(path: Path) -> "LedgerConfig":
        assert isinstance(path, Path), f"Expected Path, got {type(path)}"
        with path.open("rt", encoding="utf-8") as f:
            return LedgerConfig.from_dict(json.load(f))


def read_ledger_config(path: Path | None = None) -> LedgerConfig:
    """Read configuration from a file or the environment.

    ``JSON_RPC_URL`` environment variable overrides the file's node URL.

    :raise ValueError:
        If no path is given and ``YEARN_LEDGER_CONFIG`` is not set
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            raise ValueError(f"Environment variable {CONFIG_ENV_VAR} is not set")
        path = Path(env_path)

    config = LedgerConfig.read(path)
    json_rpc_url = os.environ.get(JSON_RPC_ENV_VAR)
    if json_rpc_url:
        config.json_rpc_url = json_rpc_url
    return config
