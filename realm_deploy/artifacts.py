import os
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List

from .errors import ArtifactNotFoundError, ArtifactFormatError
from .linker import link_bytecode, find_placeholders, normalize_address

logger = logging.getLogger(__name__)


@dataclass
class Artifact:
    """Compiled contract as produced by the build toolchain"""
    name: str
    abi: List[Dict[str, Any]]
    bytecode: str
    source_path: Optional[str] = None
    networks: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    links: Dict[str, str] = field(default_factory=dict)
    path: Optional[str] = None
    _link_sources: Dict[str, Optional[str]] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def from_json(cls, data: Dict[str, Any], path: Optional[str] = None) -> "Artifact":
        name = data.get('contractName')
        if not name or 'abi' not in data or 'bytecode' not in data:
            raise ArtifactFormatError(f"Artifact {path or name} must define contractName, abi and bytecode")

        bytecode = data['bytecode']
        # Foundry style artifacts nest bytecode under "object"
        if isinstance(bytecode, dict):
            bytecode = bytecode.get('object', '')
        if not bytecode.startswith('0x'):
            bytecode = '0x' + bytecode

        source_path = data.get('sourceName') or (data.get('ast') or {}).get('absolutePath') or data.get('sourcePath')

        return cls(
            name=name,
            abi=data['abi'],
            bytecode=bytecode,
            source_path=source_path,
            networks=dict(data.get('networks') or {}),
            path=path,
        )

    def link(self, library_name: str, address: str, source_path: Optional[str] = None):
        """Records a library address to be embedded at deploy time"""
        normalize_address(address)
        self.links[library_name] = address
        self._link_sources[library_name] = source_path

    def linked_bytecode(self) -> str:
        bytecode = self.bytecode
        for library_name, address in self.links.items():
            bytecode = link_bytecode(bytecode, library_name, address, self._link_sources.get(library_name))
        return bytecode

    def unlinked_libraries(self) -> List[str]:
        return find_placeholders(self.linked_bytecode())

    def is_deployed(self, network_id) -> bool:
        return bool(self.networks.get(str(network_id), {}).get('address'))

    def address(self, network_id) -> Optional[str]:
        return self.networks.get(str(network_id), {}).get('address')

    def record_deployment(self, network_id, address: str, tx_hash: Optional[str] = None):
        entry = dict(self.networks.get(str(network_id), {}))
        entry['address'] = address
        if tx_hash is not None:
            entry['transactionHash'] = tx_hash
        self.networks[str(network_id)] = entry


class ArtifactRegistry:
    """Resolves compiled artifacts by contract name from a build directory"""

    def __init__(self, build_dir: str):
        self.build_dir = build_dir
        self._cache: Dict[str, Artifact] = {}

    def path_for(self, name: str) -> str:
        return os.path.join(self.build_dir, f"{name}.json")

    def require(self, name: str) -> Artifact:
        """Loads an artifact, returning the same instance on later calls"""
        if name in self._cache:
            return self._cache[name]

        path = self.path_for(name)
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ArtifactNotFoundError(name, path)
        except json.JSONDecodeError as e:
            raise ArtifactFormatError(f"Artifact {path} is not valid JSON: {e}")

        artifact = Artifact.from_json(data, path=path)
        if artifact.name != name:
            raise ArtifactFormatError(f"Artifact {path} declares contractName {artifact.name!r}, expected {name!r}")

        logger.debug(f"Loaded artifact {name} from {path}")
        self._cache[name] = artifact
        return artifact

    def save(self, artifact: Artifact):
        """Writes the networks section back, keeping every other key of the file"""
        path = artifact.path or self.path_for(artifact.name)
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except FileNotFoundError:
            data = {'contractName': artifact.name, 'abi': artifact.abi, 'bytecode': artifact.bytecode}

        data['networks'] = artifact.networks
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)
        logger.debug(f"Saved artifact {artifact.name} to {path}")
