import logging
from typing import Dict, Any, Optional, List, Union

from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from .artifacts import Artifact, ArtifactRegistry
from .config import DeployConfig
from .errors import DeploymentError, LinkError, TransactionFailedError

logger = logging.getLogger(__name__)


class Deployer:
    """Deploys artifacts and links libraries on a single network"""

    def __init__(self, w3: Web3, registry: ArtifactRegistry, network_id, account: str,
                 private_key: Optional[str] = None, gas: Optional[int] = None,
                 tx_timeout: int = 300, overwrite: bool = True):
        self.w3 = w3
        self.registry = registry
        self.network_id = str(network_id)
        self.account = account
        self.private_key = private_key
        self.gas = gas
        self.tx_timeout = tx_timeout
        self.overwrite = overwrite

        # name -> address of everything deployed or reused during this run
        self.deployed: Dict[str, str] = {}

    @classmethod
    def from_config(cls, config: DeployConfig, registry: ArtifactRegistry, overwrite: bool = True) -> "Deployer":
        """Connects to the configured RPC endpoint and resolves the deploying account"""
        w3 = Web3(Web3.HTTPProvider(config.rpc_url))
        if config.poa_middleware:
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        if not w3.is_connected():
            raise DeploymentError(f"Could not connect to RPC URL: {config.rpc_url}")
        logger.info(f"Connected to blockchain at {config.rpc_url}")

        if config.private_key:
            account = w3.eth.account.from_key(config.private_key).address
        else:
            accounts = w3.eth.accounts
            if not accounts:
                raise DeploymentError("PRIVATE_KEY not set and the node exposes no unlocked accounts")
            account = accounts[0]

        network_id = config.chain_id if config.chain_id is not None else w3.eth.chain_id
        logger.info(f"Using deployer account: {account} (network id {network_id})")

        return cls(
            w3,
            registry,
            network_id,
            account,
            private_key=config.private_key,
            gas=config.gas,
            tx_timeout=config.tx_timeout,
            overwrite=overwrite,
        )

    def deploy(self, artifact: Artifact, *args, overwrite: Optional[bool] = None) -> str:
        """Deploys an artifact and records its address. Returns the address."""
        if overwrite is None:
            overwrite = self.overwrite

        if not overwrite and artifact.is_deployed(self.network_id):
            address = artifact.address(self.network_id)
            logger.info(f"Reusing {artifact.name} at {address}")
            self.deployed[artifact.name] = address
            return address

        unresolved = artifact.unlinked_libraries()
        if unresolved:
            raise LinkError(
                f"{artifact.name} contains unresolved libraries. "
                f"Deploy and link the following libraries first: {', '.join(p.strip('_$') for p in unresolved)}"
            )

        logger.info(f"Deploying {artifact.name}...")
        contract = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.linked_bytecode())
        constructor = contract.constructor(*args)

        if self.private_key:
            tx = constructor.build_transaction(self._tx_params(nonce=True))
            signed_tx = self.w3.eth.account.sign_transaction(tx, self.private_key)
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        else:
            tx_hash = constructor.transact(self._tx_params())

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info(f"-> Transaction sent! Hash: {tx_hash_hex}")

        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.tx_timeout)
        if receipt['status'] != 1:
            raise TransactionFailedError(tx_hash_hex, receipt)

        address = Web3.to_checksum_address(receipt['contractAddress'])
        logger.info(f"-> {artifact.name} deployed at {address} (block {receipt['blockNumber']})")

        artifact.record_deployment(self.network_id, address, tx_hash_hex)
        self.registry.save(artifact)
        self.deployed[artifact.name] = address
        return address

    def link(self, library: Artifact, dependents: Union[Artifact, List[Artifact]]):
        """Embeds a deployed library's address into the dependents' bytecode"""
        if isinstance(dependents, Artifact):
            dependents = [dependents]

        address = library.address(self.network_id)
        if not address:
            raise LinkError(f"Cannot link {library.name}: it has not been deployed on network {self.network_id}")

        for dependent in dependents:
            dependent.link(library.name, address, library.source_path)
            logger.info(f"Linking {library.name} ({address}) into {dependent.name}")

    def _tx_params(self, nonce: bool = False) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            'from': self.account,
            'gasPrice': self.w3.eth.gas_price,
        }
        if self.gas is not None:
            params['gas'] = self.gas
        if nonce:
            params['nonce'] = self.w3.eth.get_transaction_count(self.account)
        return params
