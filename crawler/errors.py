class FetchError(Exception):
    """A single page or resource could not be retrieved."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class DownloadNotFoundError(LookupError):
    pass


class DownloadInProgressError(RuntimeError):
    pass


class DownloadFinishedError(RuntimeError):
    """The job already left the pending state and cannot be started again."""


class DownloadCancelled(Exception):
    pass
