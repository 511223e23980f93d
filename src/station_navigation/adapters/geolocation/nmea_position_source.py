"""Position source backed by a serial NMEA 0183 GPS receiver."""

from __future__ import annotations

import asyncio
import errno
import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from datetime import time as dt_time
from typing import Any

import pynmea2
import serial

from station_navigation.domain.errors import (
    PermissionDeniedError,
    PositionError,
    PositionTimeoutError,
    PositionUnavailableError,
)
from station_navigation.domain.models import Coordinate, PermissionState, PositionFix
from station_navigation.domain.ports.position_source import PositionSource

logger = logging.getLogger(__name__)

# Typical user equivalent range error of a consumer receiver; accuracy ~ HDOP * UERE
NOMINAL_UERE_METERS = 5.0


def _parse_sentence(line: str) -> pynmea2.NMEASentence | None:
    try:
        return pynmea2.parse(line.strip(), check=True)
    except pynmea2.ParseError:
        return None


def _fix_from_sentence(msg: pynmea2.NMEASentence, now: datetime | None) -> PositionFix | None:
    accuracy: float | None = None
    if isinstance(msg, pynmea2.GGA):
        if not msg.gps_qual:
            return None
        try:
            accuracy = float(msg.horizontal_dil) * NOMINAL_UERE_METERS
        except (TypeError, ValueError):
            accuracy = None
    elif isinstance(msg, pynmea2.RMC):
        if msg.status != "A":
            return None
    else:
        return None

    try:
        coordinate = Coordinate(latitude=msg.latitude, longitude=msg.longitude)
    except ValueError:
        return None
    return PositionFix(
        coordinate=coordinate,
        timestamp=now or datetime.now(UTC),
        accuracy_meters=accuracy,
    )


def parse_nmea_fix(line: str, now: datetime | None = None) -> PositionFix | None:
    """Parse a GGA or RMC sentence into a fix.

    Returns None for other sentences, invalid checksums and sentences
    reporting no fix.
    """
    msg = _parse_sentence(line)
    return _fix_from_sentence(msg, now) if msg is not None else None


class EpochFixFilter:
    """Turns a sentence stream into at most one fix per receiver epoch.

    A receiver reports each epoch in both GGA and RMC, stamped with the same
    UTC time. The first sentence with a fix wins; later ones for that time
    are dropped.
    """

    def __init__(self) -> None:
        """Initialize with no epoch delivered."""
        self._last_epoch: dt_time | None = None

    def parse(self, line: str) -> PositionFix | None:
        """Parse a line, returning a fix only for an epoch not delivered yet."""
        msg = _parse_sentence(line)
        fix = _fix_from_sentence(msg, None) if msg is not None else None
        if fix is None:
            return None

        epoch = getattr(msg, "timestamp", None)
        if epoch is not None and epoch == self._last_epoch:
            logger.debug(f"Dropping {msg.sentence_type} repeating epoch {epoch}")
            return None
        self._last_epoch = epoch
        return fix


def _map_serial_error(error: Exception, port: str) -> PositionError:
    """Map an OS/serial failure to a position error."""
    if getattr(error, "errno", None) in (errno.EACCES, errno.EPERM) or isinstance(
        error, PermissionError
    ):
        return PermissionDeniedError(f"Access to {port} denied")
    return PositionUnavailableError(f"GPS receiver on {port} unavailable: {error}")


class NmeaSubscription:
    """Subscription handle for the serial reader thread."""

    def __init__(self) -> None:
        """Initialize an unattached handle."""
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def active(self) -> bool:
        """Whether fixes may still be delivered."""
        return (
            not self._stop.is_set() and self._thread is not None and self._thread.is_alive()
        )

    @property
    def stopped(self) -> bool:
        """Whether cancel() was called."""
        return self._stop.is_set()

    def attach(self, thread: threading.Thread) -> None:
        """Attach the reader thread."""
        self._thread = thread

    def cancel(self) -> None:
        """Stop delivery immediately. Idempotent.

        The reader thread exits after its current read times out.
        """
        self._stop.set()

    def deliver(self, callback: Callable[[Any], None], payload: Any) -> None:
        """Invoke a callback on the loop unless the subscription was cancelled."""
        if not self._stop.is_set():
            callback(payload)


class NmeaPositionSource(PositionSource):
    """Reads fixes from a GPS receiver speaking NMEA 0183 over a serial port.

    The blocking serial reader runs in a worker thread; fixes are handed to
    the event loop with call_soon_threadsafe.
    """

    def __init__(
        self,
        port: str,
        baud: int = 9600,
        permission_timeout_seconds: float = 10.0,
        position_timeout_seconds: float = 15.0,
        serial_factory: Callable[..., Any] = serial.Serial,
    ) -> None:
        """Initialize the source.

        Args:
            port: Serial device path (e.g. /dev/ttyS0).
            baud: Baud rate of the receiver.
            permission_timeout_seconds: Bound for request_permission.
            position_timeout_seconds: Bound for get_current_position.
            serial_factory: Factory opening the serial port (injectable for tests).
        """
        self._port = port
        self._baud = baud
        self._permission_timeout_seconds = permission_timeout_seconds
        self._position_timeout_seconds = position_timeout_seconds
        self._serial_factory = serial_factory

    def _open(self) -> Any:
        return self._serial_factory(self._port, self._baud, timeout=1)

    async def request_permission(self) -> PermissionState:
        """Probe the serial device; DENIED when the OS refuses access."""
        try:
            async with asyncio.timeout(self._permission_timeout_seconds):
                return await asyncio.to_thread(self._probe)
        except TimeoutError as e:
            raise PositionTimeoutError(f"No answer from {self._port} while probing") from e

    def _probe(self) -> PermissionState:
        try:
            with self._open():
                return PermissionState.GRANTED
        except (serial.SerialException, OSError) as e:
            error = _map_serial_error(e, self._port)
            if isinstance(error, PermissionDeniedError):
                logger.warning(error.reason)
                return PermissionState.DENIED
            raise error from e

    async def get_current_position(self) -> Coordinate:
        """Read sentences until the first valid fix or the bounded wait expires."""
        stop = threading.Event()
        try:
            async with asyncio.timeout(self._position_timeout_seconds):
                fix = await asyncio.to_thread(self._read_first_fix, stop)
        except TimeoutError as e:
            stop.set()
            raise PositionTimeoutError(
                f"No GPS fix within {self._position_timeout_seconds:g}s"
            ) from e
        return fix.coordinate

    def _read_first_fix(self, stop: threading.Event) -> PositionFix:
        try:
            with self._open() as ser:
                while not stop.is_set():
                    line = ser.readline().decode(errors="ignore")
                    fix = parse_nmea_fix(line) if line else None
                    if fix is not None:
                        return fix
        except (serial.SerialException, OSError) as e:
            raise _map_serial_error(e, self._port) from e
        raise PositionTimeoutError("Position read cancelled")

    def watch_position(
        self,
        on_update: Callable[[PositionFix], None],
        on_error: Callable[[PositionError], None],
    ) -> NmeaSubscription:
        """Start the reader thread and stream fixes to the running loop."""
        loop = asyncio.get_running_loop()
        subscription = NmeaSubscription()
        thread = threading.Thread(
            target=self._stream,
            args=(loop, subscription, on_update, on_error),
            name="nmea-reader",
            daemon=True,
        )
        subscription.attach(thread)
        thread.start()
        return subscription

    def _stream(
        self,
        loop: asyncio.AbstractEventLoop,
        subscription: NmeaSubscription,
        on_update: Callable[[PositionFix], None],
        on_error: Callable[[PositionError], None],
    ) -> None:
        try:
            with self._open() as ser:
                logger.info(f"GPS opened on {self._port} @ {self._baud}")
                epochs = EpochFixFilter()
                while not subscription.stopped:
                    line = ser.readline().decode(errors="ignore")
                    fix = epochs.parse(line) if line else None
                    if fix is not None:
                        loop.call_soon_threadsafe(subscription.deliver, on_update, fix)
        except (serial.SerialException, OSError) as e:
            error = _map_serial_error(e, self._port)
            logger.warning(f"GPS reader error: {error.reason}")
            try:
                loop.call_soon_threadsafe(subscription.deliver, on_error, error)
            except RuntimeError:
                logger.debug("Event loop closed before GPS error could be delivered")
        except RuntimeError:
            logger.debug("Event loop closed; GPS reader exiting")
        logger.info(f"GPS reader on {self._port} stopped")
