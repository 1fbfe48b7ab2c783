"""
Frame data models for the timeline.

A frame refers to an encoded still image through a resource whose lifetime
is explicit:

- ``PersistentResource`` holds self-contained bytes and needs no cleanup.
- ``RevocableResource`` is a handle into a process-local ``ResourceStore``
  and must be released when the slot holding it is deleted or replaced.

Classes:
    ResourceStore: Process-local registry of revocable byte blobs
    PersistentResource: Self-contained frame bytes
    RevocableResource: Handle into a ResourceStore
    Frame: One frame of the timeline
    ReconstructResult: Outcome of re-encoding the timeline
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union
import logging
import uuid

from RS_Libs.constants import FRAME_MEDIA_TYPE
from RS_Libs.errors import ResourceRevokedError
from RS_Libs.ImageEditingLib.image_models import decode_image

logger = logging.getLogger(__name__)

LIFETIME_PERSISTENT = "persistent"
LIFETIME_REVOCABLE = "revocable"


class ResourceStore:
    """
    Registry of in-memory blobs addressed by opaque handles.

    Example:
        >>> store = ResourceStore()
        >>> handle = store.create(png_bytes)
        >>> store.resolve(handle) == png_bytes
        True
        >>> store.revoke(handle)
        True
        >>> store.resolve(handle)
        Traceback (most recent call last):
        ResourceRevokedError: Frame resource has been revoked: blob:...
    """

    def __init__(self):
        self._blobs: Dict[str, Tuple[bytes, str]] = {}

    def create(self, data: bytes, media_type: str = FRAME_MEDIA_TYPE) -> str:
        handle = f"blob:{uuid.uuid4()}"
        self._blobs[handle] = (bytes(data), media_type)
        return handle

    def resolve(self, handle: str) -> bytes:
        """
        Get the bytes behind a handle.

        Raises:
            ResourceRevokedError: If the handle was revoked or never existed
        """
        try:
            return self._blobs[handle][0]
        except KeyError:
            raise ResourceRevokedError(handle) from None

    def media_type(self, handle: str) -> str:
        try:
            return self._blobs[handle][1]
        except KeyError:
            raise ResourceRevokedError(handle) from None

    def revoke(self, handle: str) -> bool:
        """Release a handle. Returns False if it was already released."""
        if self._blobs.pop(handle, None) is None:
            logger.debug(f"Resource already revoked: {handle}")
            return False
        return True

    def is_live(self, handle: str) -> bool:
        return handle in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)


@dataclass(frozen=True)
class PersistentResource:
    data: bytes
    media_type: str = FRAME_MEDIA_TYPE


@dataclass(frozen=True)
class RevocableResource:
    handle: str
    store: ResourceStore = field(compare=False, repr=False)


FrameResource = Union[PersistentResource, RevocableResource]


@dataclass(frozen=True)
class Frame:
    resource: FrameResource

    @classmethod
    def persistent(cls, data: bytes) -> "Frame":
        return cls(PersistentResource(bytes(data)))

    @classmethod
    def revocable(cls, data: bytes, store: ResourceStore) -> "Frame":
        return cls(RevocableResource(store.create(data), store))

    @property
    def lifetime(self) -> str:
        resource = self.resource
        if isinstance(resource, PersistentResource):
            return LIFETIME_PERSISTENT
        if isinstance(resource, RevocableResource):
            return LIFETIME_REVOCABLE
        raise TypeError(f"Unknown frame resource: {type(resource)}")

    def read_bytes(self) -> bytes:
        """
        Resolve the encoded frame.

        Raises:
            ResourceRevokedError: If a revocable resource was already released
        """
        resource = self.resource
        if isinstance(resource, PersistentResource):
            return resource.data
        if isinstance(resource, RevocableResource):
            return resource.store.resolve(resource.handle)
        raise TypeError(f"Unknown frame resource: {type(resource)}")

    def release(self) -> None:
        """Release the resource. Persistent frames need nothing; repeats are harmless."""
        resource = self.resource
        if isinstance(resource, PersistentResource):
            return
        if isinstance(resource, RevocableResource):
            resource.store.revoke(resource.handle)
            return
        raise TypeError(f"Unknown frame resource: {type(resource)}")

    def copy(self, store: ResourceStore) -> "Frame":
        """
        Independent copy of this frame.

        Revocable frames get a new handle so each slot owns its own resource.
        """
        if isinstance(self.resource, RevocableResource):
            return Frame.revocable(self.read_bytes(), store)
        return Frame(self.resource)

    def load_image(self):
        """Decode the frame into an RGBA Pillow image."""
        return decode_image(self.read_bytes())

    def natural_size(self) -> Tuple[int, int]:
        return self.load_image().size


@dataclass
class ReconstructResult:
    """Outcome of ``FrameTimelineEngine.reconstruct``.

    Attributes:
        data: Encoded animated GIF, or None on failure
        error: Failure description
        failed_frame: Index of the frame whose bytes could not be resolved
    """
    data: Optional[bytes] = None
    error: Optional[str] = None
    failed_frame: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.data is not None and self.error is None

    @classmethod
    def failure(cls, error: str, failed_frame: Optional[int] = None) -> "ReconstructResult":
        return cls(data=None, error=error, failed_frame=failed_frame)
