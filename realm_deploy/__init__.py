"""
Realm Deployment Tooling
========================

Deploys the Realm contract suite from compiled artifacts.

Structure:
- artifacts: artifact registry (resolve compiled contracts by name)
- linker: library placeholder linking for EVM bytecode
- deployer: web3 based deploy/link operations
- migrations: ordered deployment scripts
- runner: migration runner and command line entry point
"""

__version__ = "1.0.0"
__author__ = "Realm Team"
