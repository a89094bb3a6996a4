# ==========================================
# 1. Configuration Filenames
# ==========================================
CONFIG_FILE = "config.json"
CONFIG_CREDENTIALS_AZURE_FILE = "config_credentials_azure.json"

# Keys required in specific config files
CONFIG_SCHEMAS = {
    CONFIG_FILE: ["primary", "secondary"],
    CONFIG_CREDENTIALS_AZURE_FILE: ["azure_subscription_id"],
}

# ==========================================
# 2. Polling Defaults
# ==========================================
DEFAULT_POLL_INTERVAL_SECONDS = 10
DEFAULT_POLL_MAX_RETRIES = 60

PROVISIONING_STATE_SUCCEEDED = "Succeeded"
PROVISIONING_STATE_FAILED = "Failed"

MIRROR_STATE_BROKEN = "Broken"

# ==========================================
# 3. Azure NetApp Files Limits
# ==========================================
TIB = 1024 ** 4
GIB = 1024 ** 3

# Capacity pool: 4 TiB to 500 TiB
POOL_SIZE_MIN_BYTES = 4 * TIB
POOL_SIZE_MAX_BYTES = 500 * TIB

# Volume quota (usage threshold): 100 GiB to 100 TiB
VOLUME_SIZE_MIN_BYTES = 100 * GIB
VOLUME_SIZE_MAX_BYTES = 100 * TIB

DEFAULT_SERVICE_LEVEL = "Premium"

DEFAULT_PROTOCOL_TYPES = ["NFSv3"]

DEFAULT_REPLICATION_SCHEDULE = "hourly"

DEFAULT_ALLOWED_CLIENTS = "0.0.0.0/0"

# ==========================================
# 4. Azure Resource Types
# ==========================================
NETAPP_NAMESPACE = "Microsoft.NetApp"
NETAPP_ACCOUNT_TYPE = "netAppAccounts"
NETAPP_POOL_TYPE = "capacityPools"
NETAPP_VOLUME_TYPE = "volumes"

# Endpoint type of a data-protection volume
REPLICATION_ENDPOINT_DESTINATION = "dst"

VOLUME_TYPE_DATA_PROTECTION = "DataProtection"

# ==========================================
# 5. Modes
# ==========================================
MODE_DEBUG = "DEBUG"
MODE_PRODUCTION = "PRODUCTION"
