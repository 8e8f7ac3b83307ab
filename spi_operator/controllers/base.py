"""
Helpers shared by the reconcilers.
"""

from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, TypeVar

from pydantic import BaseModel

from ..enums import ErrorKind
from ..exceptions import ErrorCode, ExternalServiceError, classify_error
from ..kube.client import ResourceClient
from ..schemas.common import KubernetesObject
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..context.reconcile_context import ReconcileContext

T = TypeVar("T", bound=KubernetesObject)


def write_status(
    ctx: "ReconcileContext", client: ResourceClient, obj: T, status: BaseModel
) -> T:
    """
    Replace the status of obj if it differs from status.

    Nothing is written when the reconcile was cancelled in the meantime.

    Returns:
        The object as stored after the write, obj itself if nothing changed
    """
    previous = obj.status  # type: ignore[attr-defined]
    if previous == status:
        return obj

    ctx.check(f"update status of {obj}")
    obj.status = status  # type: ignore[attr-defined]
    updated = client.update_status(ctx, obj)

    get_logger().info(
        "Status updated",
        extra={
            "object": str(obj),
            "phase": getattr(status.phase, "value", None),  # type: ignore[attr-defined]
            "previous_phase": getattr(previous.phase, "value", None),
        },
    )
    return updated


@contextmanager
def provider_call(operation: str, provider_url: str) -> Iterator[None]:
    """
    Treat any failure of a provider operation as an infrastructure failure.

    Operations that report bad token content do so through their return value,
    so an error raised by them, even a 401 from the provider, is retried.
    """
    try:
        yield
    except Exception as e:
        if classify_error(e) == ErrorKind.INFRASTRUCTURE:
            raise
        raise ExternalServiceError(
            f"service provider failed to {operation}: {e}",
            service_name="service-provider",
            error_code=ErrorCode.SERVICE_PROVIDER_ERROR,
            cause=e,
            operation=operation,
            provider_url=provider_url,
        ) from e
