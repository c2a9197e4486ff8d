from presence.errors import CameraUnavailableError


class Camera:
    """
    A capture device held for the duration of a ``with`` block.

    ``stop()`` runs on every exit from the block, whether the flow succeeded,
    failed or raised, so the device is never left open.
    """

    def start(self) -> None:
        raise NotImplementedError

    def capture(self) -> str:
        """Grab one frame as an image data URL."""
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False


class UploadedFrameCamera(Camera):
    """Replays a frame the client captured and sent with the request."""

    def __init__(self, frame: str):
        self.frame = frame
        self.active = False

    def start(self):
        if not self.frame:
            raise CameraUnavailableError()
        self.active = True

    def capture(self):
        if not self.active:
            raise CameraUnavailableError("Camera is not running.")
        return self.frame

    def stop(self):
        self.active = False
