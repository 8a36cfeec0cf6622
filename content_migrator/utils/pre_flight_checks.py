from typing import Callable, Optional

from content_migrator.models import ProjectInformation
from content_migrator.utils.errors import ContentImportError, ContentManagementError, NotFoundError


class PreFlightCheckError(ContentImportError):
    """Custom exception for pre-flight check failures."""
    pass


def _print(message: str, level: str = "INFO") -> None:
    print(f"[{level}] {message}")


def run_pre_flight_checks(client, log: Optional[Callable[..., None]] = None) -> ProjectInformation:
    """
    Verifies that the target project is reachable with the configured credentials
    and reports which project and environment the import is about to write to.

    Args:
        client: The Management API client of the target project.
        log: Callable receiving ``(message, level)``; defaults to printing.

    Returns:
        The project information returned by the target.

    Raises:
        PreFlightCheckError: If any check fails.
    """
    log = log or _print
    log("Running pre-flight checks...")

    if not getattr(client, "project_id", None):
        raise PreFlightCheckError("Target project id was not found in the configuration.")
    if not getattr(client, "api_key", None):
        raise PreFlightCheckError("Management API key was not found in the configuration.")

    try:
        info = client.project_information()
    except NotFoundError:
        raise PreFlightCheckError(f"Project '{client.project_id}' does not exist or is not accessible.")
    except ContentManagementError as e:
        if e.status_code in (401, 403):
            raise PreFlightCheckError("The Management API key is invalid, expired or lacks permissions.")
        raise PreFlightCheckError(f"Unexpected error while reading project information: {e}")

    log(f"Project '{info.name}'")
    log(f"Environment '{info.environment or 'unknown'}'")
    log("Pre-flight checks passed successfully.")
    return info
