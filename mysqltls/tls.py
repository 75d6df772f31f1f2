"""TLS provisioning for handles that have not connected yet."""

from __future__ import annotations

import logging

from pymysql.constants import CLIENT

from .drivers import ConnectionHandle, HandleStateError
from .models import ErrorVisibility, TlsMaterial

LOG = logging.getLogger(__name__)

DEFAULT_TLS_CLIENT_FLAGS = CLIENT.SSL


class ClientFlags:
    """Client capability flags shared by every connect call of one process.

    The value is either supplied by the host application or defaulted once by
    the TLS provisioner; an explicit value is never overwritten.

    Encryption itself is carried by the handle's SSL context, not by these
    flags: drivers strip ``CLIENT.SSL`` before connecting and PyMySQL sets it
    again only when it is given a context.
    """

    __slots__ = ("_value",)

    def __init__(self, value: int | None = None) -> None:
        self._value = value

    @property
    def value(self) -> int:
        return self._value or 0

    @property
    def is_set(self) -> bool:
        return self._value is not None

    def setdefault(self, value: int) -> int:
        if self._value is None:
            self._value = value
        return self._value

    def __repr__(self) -> str:
        return f"ClientFlags({self._value!r})"


class TlsProvisioner:
    """Applies TLS material to an unconnected handle when it is complete.

    Server certificate verification is off unless ``verify_server_cert`` is
    set; only the client identity is asserted by default.
    """

    def __init__(
        self,
        client_flags: ClientFlags,
        *,
        verify_server_cert: bool = False,
        visibility: ErrorVisibility = ErrorVisibility.PRODUCTION,
    ) -> None:
        self._client_flags = client_flags
        self._verify_server_cert = verify_server_cert
        self._visibility = visibility

    def configure(self, handle: ConnectionHandle, material: TlsMaterial | None) -> None:
        """Configure ``handle`` for encrypted transport.

        A no-op when ``material`` is missing or has an empty path. Raises ``HandleStateError`` if the
        handle is already connected. Errors from the TLS setup itself are
        logged and swallowed; the connect call that follows reports the
        failure.
        """

        if material is None or not material.complete:
            return
        if handle.connected:
            raise HandleStateError("TLS must be configured before the handle connects.")

        self._client_flags.setdefault(DEFAULT_TLS_CLIENT_FLAGS)
        try:
            handle.ssl_set(material, verify_server_cert=self._verify_server_cert)
        except (OSError, ValueError) as exc:  # ssl.SSLError is an OSError
            handle.error = exc
            if self._visibility is ErrorVisibility.DEBUG:
                LOG.warning("TLS setup failed; connecting without encryption", exc_info=True)
            else:
                LOG.debug("TLS setup failed: %s", exc)


__all__ = ["ClientFlags", "DEFAULT_TLS_CLIENT_FLAGS", "TlsProvisioner"]
