# Status name that ends a wait successfully. Every other status is "in progress".
RUNNING_STATUS = "RUNNING"

# Seconds between two status polls
POLL_INTERVAL = 5.0

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"

# Logging / monitoring default to "on" when left unset.
# This literal turns them off explicitly.
NONE_SERVICE = "none"

ADMIN_USERNAME = "admin"

# Keys this driver owns inside ClusterInfo.metadata
STATE_KEY = "state"
PROJECT_ID_KEY = "project-id"
ZONE_KEY = "zone"
NODE_POOL_KEY = "nodePool"
