#!/usr/bin/env python3
"""
Realm migration runner
Runs pending deployment migrations and records progress in deployment.json
"""

import os
import json
import logging
import argparse
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from .artifacts import ArtifactRegistry
from .config import DeployConfig, load_config
from .deployer import Deployer
from .migrations import MIGRATIONS
from .notifications import Notifier

logger = logging.getLogger(__name__)


@dataclass
class DeploymentRecord:
    """Deployment summary persisted between runs"""
    path: str
    network: Optional[str] = None
    chain_id: Optional[int] = None
    contracts: Dict[str, str] = field(default_factory=dict)
    roles: Dict[str, str] = field(default_factory=dict)
    last_completed_migration: int = 0
    updated_at: Optional[str] = None

    @classmethod
    def load(cls, path: str) -> "DeploymentRecord":
        if not os.path.exists(path):
            return cls(path=path)
        with open(path, 'r') as f:
            data = json.load(f)
        return cls(
            path=path,
            network=data.get('network'),
            chain_id=data.get('chainId'),
            contracts=dict(data.get('contracts') or {}),
            roles=dict(data.get('roles') or {}),
            last_completed_migration=int(data.get('lastCompletedMigration', 0)),
            updated_at=data.get('updatedAt'),
        )

    def to_json(self) -> Dict:
        return {
            'network': self.network,
            'chainId': self.chain_id,
            'contracts': self.contracts,
            'roles': self.roles,
            'lastCompletedMigration': self.last_completed_migration,
            'updatedAt': self.updated_at,
        }

    def bind_network(self, network: Optional[str], chain_id: Optional[int]):
        """Starts fresh progress when the record belongs to another network"""
        network_changed = network is not None and self.network is not None and network != self.network
        chain_changed = chain_id is not None and self.chain_id is not None and chain_id != self.chain_id
        if network_changed or chain_changed:
            logger.info(f"Deployment record belongs to {self.network} (chain {self.chain_id}), "
                        f"starting fresh for {network} (chain {chain_id})")
            self.contracts = {}
            self.roles = {}
            self.last_completed_migration = 0
        if network is not None:
            self.network = network
        if chain_id is not None:
            self.chain_id = chain_id

    def save(self):
        self.updated_at = datetime.now().isoformat()
        with open(self.path, 'w') as f:
            json.dump(self.to_json(), f, indent=2)


def run_migrations(deployer: Deployer, registry: ArtifactRegistry, record: DeploymentRecord,
                   reset: bool = False, migrations=None, network: Optional[str] = None) -> DeploymentRecord:
    """Runs every pending migration in order. Failures propagate unchanged."""
    if migrations is None:
        migrations = MIGRATIONS

    chain_id = int(deployer.network_id) if deployer.network_id.isdigit() else None
    record.bind_network(network, chain_id)
    record.roles['deployer'] = deployer.account

    start_after = 0 if reset else record.last_completed_migration
    pending = [m for m in sorted(migrations, key=lambda m: m[0]) if m[0] > start_after]
    if not pending:
        logger.info(f"Nothing to migrate, last completed migration is {record.last_completed_migration}")
        return record

    for number, name, migration in pending:
        logger.info(f"Running migration {number}_{name}...")
        migration(deployer, registry)

        record.contracts.update(deployer.deployed)
        record.last_completed_migration = number
        record.save()
        logger.info(f"Migration {number}_{name} completed")

    return record


def setup_logging(config: DeployConfig):
    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(config.log_file),
            logging.StreamHandler()
        ]
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Deploy the Realm contracts")
    parser.add_argument('--reset', action='store_true', help="run all migrations from the beginning")
    parser.add_argument('--network', help="network name recorded in the deployment file")
    parser.add_argument('--build-dir', help="directory holding compiled contract artifacts")
    parser.add_argument('--deployment-file', help="path of the deployment summary file")
    return parser.parse_args(argv)


def run(argv=None) -> DeploymentRecord:
    """Parses arguments, runs the pending migrations and returns the updated record"""
    args = parse_args(argv)
    config = load_config()
    if args.network:
        config.network = args.network
    if args.build_dir:
        config.build_dir = args.build_dir
    if args.deployment_file:
        config.deployment_file = args.deployment_file

    setup_logging(config)
    notifier = Notifier.from_config(config)
    registry = ArtifactRegistry(config.build_dir)
    record = DeploymentRecord.load(config.deployment_file)

    try:
        deployer = Deployer.from_config(config, registry)
        run_migrations(deployer, registry, record, reset=args.reset, network=config.network)
    except Exception as e:
        logger.error(f"Deployment failed: {e}")
        notifier.notify("Realm Deployment Failed", str(e), record.contracts)
        raise

    logger.info(f"Deployment completed on {config.network}")
    for name, address in record.contracts.items():
        logger.info(f"   {name}: {address}")
    notifier.notify("Realm Deployment Completed", f"Deployed to {config.network}", record.contracts)
    return record


def main(argv=None) -> int:
    """Command line entry point"""
    run(argv)
    return 0


if __name__ == "__main__":
    main()
