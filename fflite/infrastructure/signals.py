import signal
import threading
from typing import Dict, Optional
from fflite.infrastructure.event_bus import EventBus
from fflite.domain.events import InterruptRequested

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalListener:
    """Turns SIGINT/SIGTERM into an InterruptRequested event and a cancellation flag.

    The flag is only read at well-defined points (finish marker, between batch files);
    blocking reads on ffmpeg's stderr are never interrupted. ffmpeg shares the terminal's
    process group and receives Ctrl+C on its own.
    """

    def __init__(self, event_bus: EventBus, cancel_event: Optional[threading.Event] = None):
        self.event_bus = event_bus
        self.cancel_event = cancel_event or threading.Event()
        self._previous: Dict[int, object] = {}

    def _on_interrupt(self, event: InterruptRequested):
        self.cancel_event.set()

    def _handle(self, signum, frame):
        self.event_bus.publish(InterruptRequested(signal_number=signum))

    def start(self):
        """Subscribes to InterruptRequested and installs the handlers.

        Handlers can only be installed from the main thread.
        """
        self.event_bus.subscribe(InterruptRequested, self._on_interrupt)
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in HANDLED_SIGNALS:
            self._previous[signum] = signal.getsignal(signum)
            signal.signal(signum, self._handle)

    def stop(self):
        """Restores the handlers that were active before start() and unsubscribes."""
        for signum, handler in self._previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous.clear()
        self.event_bus.unsubscribe(InterruptRequested, self._on_interrupt)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
