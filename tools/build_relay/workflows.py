"""Compiled-in build workflow table and Docker image tag computation.

Adding a repository is a data change here, never a logic change.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional

DEFAULT_REGISTRY = "ethpandaops"

# Keys are lower-case owner/name pairs.
WORKFLOW_MAP: Mapping[str, str] = MappingProxyType({
    "ethpandaops/armiarma": "build-push-armiarma.yml",
    "dapplion/beacon-metrics-gazer": "build-push-beacon-metrics-gazer.yml",
    "hyperledger/besu": "build-push-besu.yml",
    "ralexstokes/ethereum_consensus_monitor": "build-push-consensus-monitor.yml",
    "sigp/eleel": "build-push-eleel.yml",
    "ledgerwatch/erigon": "build-push-erigon.yml",
    "ethpandaops/ethereum-genesis-generator": "build-push-genesis-generator.yml",
    "ethereumjs/ethereumjs-monorepo": "build-push-ethereumjs.yml",
    "ethereum/nodemonitor": "build-push-execution-monitor.yml",
    "flashbots/builder": "build-push-flashbots-builder.yml",
    "ethereum/go-ethereum": "build-push-geth.yml",
    "ethpandaops/goomy-blob": "build-push-goomy-blob.yml",
    "migalabs/goteth": "build-push-goteth.yml",
    "grandinetech/grandine": "build-push-grandine.yml",
    "sigp/lighthouse": "build-push-lighthouse.yml",
    "chainsafe/lodestar": "build-push-lodestar.yml",
    "ralexstokes/mev-rs": "build-push-mev-rs.yml",
    "nethermindeth/nethermind": "build-push-nethermind.yml",
    "status-im/nimbus-eth1": "build-push-nimbus-eth1.yml",
    "status-im/nimbus-eth2": "build-push-nimbus-eth2.yml",
    "prysmaticlabs/prysm": "build-push-prysm.yml",
    "paradigmxyz/reth": "build-push-reth.yml",
    "consensys/teku": "build-push-teku.yml",
    "mariusvanderwijden/tx-fuzz": "build-push-tx-fuzz.yml",
})

# Projects whose workflow pushes two images instead of one.
MULTI_IMAGE_OVERRIDES: Mapping[str, tuple] = MappingProxyType({
    "prysm": ("prysm-beacon-chain", "prysm-validator"),
    "nimbus-eth2": ("nimbus-eth2", "nimbus-validator-client"),
})

WORKFLOW_FILE_PATTERN = re.compile(r"build-push-(.+)\.yml")


@dataclass(frozen=True, eq=False)
class Repository:
    """A GitHub ``owner/name`` identifier.

    Compares and hashes case-insensitively; ``full_name`` keeps the casing
    the user supplied for API calls and image tags.
    """

    full_name: str

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.full_name.split("/", 1)[-1]

    @property
    def key(self) -> str:
        return self.full_name.lower()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Repository):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class BuildRequest:
    repository: Repository
    branch: str


def lookup_workflow(repository: Repository) -> Optional[str]:
    """Return the workflow file for a repository, ignoring case."""
    return WORKFLOW_MAP.get(repository.key)


def docker_base(workflow: str) -> str:
    """Extract the image base name from ``build-push-<base>.yml``."""
    match = WORKFLOW_FILE_PATTERN.fullmatch(workflow)
    if not match:
        raise ValueError(f"Unexpected workflow file name: {workflow!r}")
    return match.group(1)


def compute_image_tags(
    base: str,
    branch: str,
    is_fork: bool,
    fork_owner: Optional[str] = None,
    registry: str = DEFAULT_REGISTRY,
) -> List[str]:
    """Compute the Docker image tag(s) a workflow run will push.

    Forked builds prefix the tag with the fork owner so they never collide
    with builds of the upstream branch of the same name.

    >>> compute_image_tags("geth", "main", False)
    ['ethpandaops/geth:main']
    """
    if is_fork:
        if not fork_owner:
            raise ValueError("fork_owner is required for forked builds")
        tag = f"{fork_owner}-{branch}"
    else:
        tag = branch

    images = MULTI_IMAGE_OVERRIDES.get(base, (base,))
    return [f"{registry}/{image}:{tag}" for image in images]
