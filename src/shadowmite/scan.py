"""
Asynchronous Wi-Fi scanning

A ScanWorker runs one network enumeration on a short-lived background
thread and hands the ScanResult to the control loop through a
HandoffChannel. The worker never touches the wizard session; the control
loop is notified and drains the channel itself.

Flow:
    control loop                     worker thread
    ------------                     -------------
    begin_scan()  ─── spawn ───────► settle delay
        │                            enumerate networks
        │                            channel.put(result) ──► notify()
    collect() ◄───────────────────────────┘
"""

import logging
import queue
import threading
import time
from enum import Enum
from typing import Callable, Generic, Optional, Sequence, TypeAlias, TypeVar

from .config import SSID, ScanResult
from .errors import EnumerationUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SETTLE_DELAY = 0.3


class HandoffChannel(Generic[T]):
    """
    Bounded single-item channel from one producer to one consumer.

    The producer calls ``put`` once per item and the optional ``notify``
    callback fires after the item is queued, so the consumer never has to
    block waiting for it.
    """

    def __init__(self, notify: Optional[Callable[[], None]] = None):
        self._queue: queue.Queue[T] = queue.Queue(maxsize=1)
        self._notify = notify

    def put(self, item: T) -> None:
        """
        Queue an item and notify the consumer.

        Raises:
            queue.Full: If the previous item has not been taken yet
        """
        self._queue.put_nowait(item)
        if self._notify is not None:
            self._notify()

    def take(self) -> Optional[T]:
        """Return the pending item, or None if nothing has been delivered"""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None


class ScanState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"


NetworkEnumerator: TypeAlias = Callable[[], Sequence[SSID]]


class ScanWorker:
    """
    Single-flight network scanner.

    State goes IDLE -> SCANNING on ``begin_scan`` and back to IDLE only
    when the control loop collects the result. There is no retry,
    timeout or cancel: an enumerator that hangs leaves the worker
    SCANNING.

    Example:
        >>> worker = ScanWorker(enumerator.scan_networks, notify=wake.set)
        >>> worker.begin_scan()
        >>> # ... later, on the control loop after wake is set
        >>> result = worker.collect()
    """

    def __init__(
        self,
        enumerate_networks: NetworkEnumerator,
        notify: Optional[Callable[[], None]] = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
    ):
        self._enumerate = enumerate_networks
        self.settle_delay = settle_delay
        self.channel: HandoffChannel[ScanResult] = HandoffChannel(notify)
        self.state = ScanState.IDLE

    @property
    def scanning(self) -> bool:
        return self.state is ScanState.SCANNING

    def begin_scan(self) -> bool:
        """
        Start a scan on a new background thread.

        Returns:
            True if a scan was started, False if one is already in flight
        """
        if self.scanning:
            logger.debug("Scan already in flight, ignoring request")
            return False

        self.state = ScanState.SCANNING
        worker = threading.Thread(target=self._run, name="wifi-scan", daemon=True)
        worker.start()
        logger.info("Wi-Fi scan started")
        return True

    def _run(self) -> None:
        """Worker body: builds a private result and hands it off"""
        time.sleep(self.settle_delay)
        try:
            networks = tuple(self._enumerate())
        except EnumerationUnavailable as e:
            logger.warning(f"Network enumerator unavailable: {e}")
            networks = ()
        except Exception as e:
            logger.error(f"Network scan failed: {e}")
            networks = ()
        self.channel.put(ScanResult(networks))

    def collect(self) -> Optional[ScanResult]:
        """
        Take the delivered result, if any, and return to IDLE.

        Must only be called from the control loop.
        """
        result = self.channel.take()
        if result is None:
            return None
        self.state = ScanState.IDLE
        logger.info(f"Wi-Fi scan delivered {len(result)} networks")
        return result
