"""
Provider implementations package.

Package Structure:
    providers/
    ├── __init__.py         # This file
    └── azure/              # Azure NetApp Files implementation
        ├── provider.py     # AzureProvider (credentials + SDK clients)
        ├── naming.py       # Resource id building and parsing
        ├── backend.py      # ResourceBackend on NetAppManagementClient
        └── layers/         # Per-resource SDK operations
"""
