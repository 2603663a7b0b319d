from __future__ import annotations

import json
from functools import lru_cache
from typing import Any

import google.auth
from google.auth import exceptions as auth_exceptions
from google.cloud import container_v1

from .core import CLOUD_PLATFORM_SCOPE
from .exceptions import CredentialsError
from .logger import logger
from .schemas.state import ClusterState

# Credentials are passed to the client explicitly. The process environment
# (GOOGLE_APPLICATION_CREDENTIALS) is never touched, so no lock is needed.


def load_credentials(credential_path: str = "", credential_content: str = "") -> Any:
    """
    Loads Google credentials from a key file path, from inline key file
    content, or from Application Default Credentials when neither is given.
    The path wins when both are set.
    """
    scopes = [CLOUD_PLATFORM_SCOPE]
    try:
        if credential_path:
            logger.debug(f"Loading credentials from {credential_path}")
            credentials, _ = google.auth.load_credentials_from_file(
                credential_path, scopes=scopes
            )
        elif credential_content:
            logger.debug("Loading credentials from inline content")
            credentials, _ = google.auth.load_credentials_from_dict(
                json.loads(credential_content), scopes=scopes
            )
        else:
            logger.debug("Loading Application Default Credentials")
            credentials, _ = google.auth.default(scopes=scopes)
    except json.JSONDecodeError as e:
        raise CredentialsError(f"credential content is not valid JSON: {e}") from e
    except auth_exceptions.GoogleAuthError as e:
        raise CredentialsError(f"failed to load credentials: {e}") from e

    return credentials


# Shared Client Registry (cached per credential source)


@lru_cache(maxsize=8)
def _cluster_manager_client(
    credential_path: str, credential_content: str
) -> container_v1.ClusterManagerClient:
    credentials = load_credentials(credential_path, credential_content)
    return container_v1.ClusterManagerClient(credentials=credentials)


def get_cluster_manager_client(state: ClusterState) -> container_v1.ClusterManagerClient:
    return _cluster_manager_client(state.credential_path, state.credential_content)


def clear_client_cache() -> None:
    _cluster_manager_client.cache_clear()
