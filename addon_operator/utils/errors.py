import json
from typing import Optional
import kopf
import kubernetes_asyncio

_ALREADY_EXISTS = "alreadyexists"

# Client errors that a later attempt can still resolve.
_RETRYABLE_CLIENT_STATUSES = (408, 409, 429)


def _reason(ex: kubernetes_asyncio.client.ApiException) -> str:
    try:
        err = json.loads(ex.body) if ex.body else {}
    except (json.JSONDecodeError, TypeError):
        return ""
    return str(err.get("reason", "")).lower()


def already_exists_error(ex: Exception) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 409 and _reason(ex) == _ALREADY_EXISTS


def convert_api_exception(
    ex: kubernetes_asyncio.client.ApiException,
    permanent: bool = None,
    delay: Optional[float] = None,
):
    """
    Convert kubernetes ApiException to a Kopf-friendly exception.

    Args:
        ex: The ApiException to convert
        permanent: If True, raises PermanentError (won't retry). If False, raises TemporaryError (will retry).
                   If None, automatically determines based on status code.
        delay: Requeue delay carried by the TemporaryError. None leaves the
               delay to the work queue backoff.

    Raises:
        kopf.TemporaryError or kopf.PermanentError with serializable error details
    """
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        raise ex

    error_msg = f"Kubernetes API error ({ex.status}): {ex.reason}"
    try:
        if ex.body:
            body = json.loads(ex.body)
            if "message" in body:
                error_msg = f"{error_msg} - {body['message']}"
    except (json.JSONDecodeError, AttributeError, TypeError):
        pass

    if permanent is None:
        is_permanent = (
            ex.status is not None
            and 400 <= ex.status < 500
            and ex.status not in _RETRYABLE_CLIENT_STATUSES
        )
    else:
        is_permanent = permanent

    if is_permanent:
        raise kopf.PermanentError(error_msg) from ex
    raise kopf.TemporaryError(error_msg, delay=delay) from ex
