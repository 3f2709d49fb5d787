"""Exceptions raised by the deployment tooling."""


class DeploymentError(Exception):
    """Base class for deployment failures."""


class ConfigurationError(DeploymentError):
    """Raised when a setting is missing or malformed."""


class ArtifactNotFoundError(DeploymentError):
    def __init__(self, name, path):
        super().__init__(f"Could not find artifact '{name}' at {path}. Compile the contracts first.")
        self.name = name
        self.path = path


class ArtifactFormatError(DeploymentError):
    """Raised when an artifact file lacks abi or bytecode."""


class LinkError(DeploymentError):
    """Raised for invalid library links or unresolved placeholders."""


class TransactionFailedError(DeploymentError):
    def __init__(self, tx_hash, receipt=None):
        super().__init__(f"Transaction {tx_hash} failed")
        self.tx_hash = tx_hash
        self.receipt = receipt
