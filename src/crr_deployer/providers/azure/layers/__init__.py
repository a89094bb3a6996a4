"""
Azure layer modules.

Contains the SDK functions for NetApp accounts, capacity pools, volumes
and cross-region replication.
"""
