from __future__ import annotations

from tenant_access.auth.models import Principal
from tenant_access.capabilities.models import Capabilities
from tenant_access.capabilities.sources import CapabilitySource
from tenant_access.configs.logging_config import get_logger
from tenant_access.errors import AppError
from tenant_access.notifications import Notifier, Toast, log_notifier

log = get_logger(__name__)

LOAD_FAILED_TITLE = "Could not load permissions"


class CapabilityStore:
    """
    Capability set for one session, owned by whoever mounted it.

    Readers only see `capabilities`, `is_loading` and `error`; the set is only
    ever replaced whole by `load`/`refetch`. Until the first load finishes
    `is_loading` is True, which gated surfaces read as "deny".

    Concurrent loads are not deduplicated. Without fencing the last response
    to land wins, even if it answers an older request.
    """

    def __init__(
        self,
        principal: Principal | None,
        source: CapabilitySource | None,
        *,
        notifier: Notifier = log_notifier,
        fence_refetch: bool = False,
    ):
        self._principal = principal
        self._source = source
        self._notifier = notifier
        self._fence = fence_refetch

        self._capabilities: Capabilities | None = None
        self._is_loading = True
        self._error: str | None = None
        self._issued = 0
        self._closed = False

    @property
    def capabilities(self) -> Capabilities | None:
        return self._capabilities

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def closed(self) -> bool:
        return self._closed

    async def load(self) -> None:
        if self._closed:
            return

        principal = self._principal
        if principal is None or self._source is None:
            # capability-exempt or unauthenticated: nothing to fetch
            self._is_loading = False
            return

        if not principal.token:
            self._fail("Authentication token not found.")
            self._is_loading = False
            return

        self._issued += 1
        seq = self._issued
        self._is_loading = True
        self._error = None

        try:
            caps = await self._source.fetch(principal)
        except AppError as e:
            if self._discard(seq):
                return
            self._fail(e.message)
        except Exception as e:
            if self._discard(seq):
                return
            log.exception("caps.store.unexpected_error type=%s", type(e).__name__)
            self._fail(str(e) or type(e).__name__)
        else:
            if self._discard(seq):
                return
            self._capabilities = caps
            log.info("caps.store.ready user=%s seq=%s", principal.identity.username, seq)
        self._is_loading = False

    async def refetch(self) -> None:
        await self.load()

    def close(self) -> None:
        """Unmount: responses that land afterwards are dropped."""
        self._closed = True

    def _discard(self, seq: int) -> bool:
        if self._closed:
            log.info("caps.store.closed_drop seq=%s", seq)
            return True
        if self._fence and seq != self._issued:
            log.info("caps.store.stale_drop seq=%s latest=%s", seq, self._issued)
            return True
        return False

    def _fail(self, message: str) -> None:
        self._error = message
        log.warning("caps.store.failed message=%s", message)
        self._notifier(Toast(title=LOAD_FAILED_TITLE, description=message, variant="destructive"))
