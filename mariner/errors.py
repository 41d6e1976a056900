"""Application error taxonomy.

- ``InputError``: unusable user input (empty query); ignored by the reducer.
- ``EntityLookupError``: geocode / zone / station / backing-store failure;
  fatal to the current operation, shown in the error view.
- ``FetchError``: weather / tide / alert failure; recovered locally, the
  affected pane simply stays empty.
- ``ProvisioningError``: the local index could not be built; fatal.
"""


class MarinerError(Exception):
    """Base exception for all application errors."""


class InputError(MarinerError):
    """Raised when user input cannot be acted on."""


class EntityLookupError(MarinerError):
    """Raised when a location, zone or station cannot be resolved."""


class NotFoundError(EntityLookupError):
    """Raised when a lookup by exact key matches nothing."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} {key} not found")


class IndexQueryError(EntityLookupError):
    """Raised when the local index cannot be queried."""


class FetchError(MarinerError):
    """Raised when a remote data fetch fails or times out."""


class ProvisioningError(MarinerError):
    """Raised when building the local index fails."""


class ProvisioningCancelled(ProvisioningError):
    """Raised inside the worker when the user quits during provisioning."""
