"""Azure NetApp Files cross-region replication deployer."""

__version__ = "0.1.0"
