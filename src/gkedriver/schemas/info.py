from enum import Enum

from pydantic import BaseModel, Field


class Capability(str, Enum):
    GET_VERSION = "get-version"
    SET_VERSION = "set-version"
    GET_CLUSTER_SIZE = "get-cluster-size"
    SET_CLUSTER_SIZE = "set-cluster-size"


class ClusterInfo(BaseModel):
    """Cluster handle owned by the orchestration system.

    The driver only reads and writes its own keys inside ``metadata`` and fills
    the display fields after create / inspect.
    """

    metadata: dict[str, str] = Field(default_factory=dict)
    endpoint: str = ""
    version: str = ""
    username: str = ""
    password: str = ""
    root_ca_certificate: str = ""
    client_certificate: str = ""
    client_key: str = ""
    node_count: int = 0
    service_account_token: str = ""
