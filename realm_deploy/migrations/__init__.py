"""
Deployment Migrations
=====================

Ordered deployment scripts. Each entry is ``(number, name, function)``;
the runner executes them in ascending order and records the last
completed number in the deployment file.
"""

from .deploy_contracts import deploy_contracts

MIGRATIONS = [
    (2, "deploy_contracts", deploy_contracts),
]

__all__ = ['MIGRATIONS', 'deploy_contracts']
