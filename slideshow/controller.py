"""Client-side slideshow state machine.

The controller owns all slideshow state and timers. Rendering happens in a
:class:`SlideshowView`, images come from an :class:`ImageSource`, and input
events are forwarded through :meth:`SlideshowController.dispatch`.

A shell wires it up as ``SlideshowController(view, HttpImageSource(base_url))``
from :mod:`slideshow.client`, awaits :meth:`SlideshowController.load` and then
forwards its UI events to :meth:`SlideshowController.dispatch`.
"""

from __future__ import annotations

import enum
import logging
import random
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from .config import CLOCK_PERIOD_SECONDS, DEFAULT_INTERVAL_SECONDS, IDLE_CURSOR_SECONDS
from .errors import FullscreenUnavailable, ImageSourceError
from .scheduler import Cancellable, LoopScheduler

logger = logging.getLogger(__name__)


class ImageSource(Protocol):
    async def list_images(self) -> list[str]: ...

    async def load_image(self, name: str) -> bytes: ...

    async def get_metadata(self, name: str) -> dict[str, Any]: ...


class Scheduler(Protocol):
    def every(self, interval: float, callback: Callable[[], None]) -> Cancellable: ...

    def after(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> Any: ...


class SlideshowView(Protocol):
    def set_status(self, text: str) -> None: ...

    def disable_start(self, label: str) -> None: ...

    def hide_start_screen(self) -> None: ...

    def fill_slot(self, slot: int, name: str, payload: bytes) -> None: ...

    def activate_slot(self, slot: int) -> None: ...

    def set_counter(self, text: str) -> None: ...

    def set_play_label(self, text: str) -> None: ...

    def set_shuffle_label(self, text: str) -> None: ...

    def set_info_visible(self, visible: bool) -> None: ...

    def show_metadata(self, metadata: dict[str, Any] | None) -> None: ...

    def set_cursor_visible(self, visible: bool) -> None: ...

    def set_clock(self, text: str) -> None: ...

    def is_fullscreen(self) -> bool: ...

    def request_fullscreen(self) -> None: ...

    def exit_fullscreen(self) -> None: ...


class Phase(enum.Enum):
    LOADING = "loading"
    EMPTY = "empty"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass
class SlideshowState:
    images: list[str] = field(default_factory=list)
    display_images: list[str] = field(default_factory=list)
    current_index: int = 0
    interval: float = DEFAULT_INTERVAL_SECONDS
    playing: bool = True
    shuffled: bool = True
    active_slot: int = 1
    info_visible: bool = False
    phase: Phase = Phase.LOADING


def shuffled(images: list[str], rng: random.Random) -> list[str]:
    """Fisher-Yates shuffle into a new list."""
    order = list(images)
    for i in range(len(order) - 1, 0, -1):
        j = rng.randint(0, i)
        order[i], order[j] = order[j], order[i]
    return order


class SlideshowController:
    # Named input events and the methods they are forwarded to.
    EVENTS = {
        "start": "start",
        "next": "next",
        "prev": "prev",
        "play_pause": "toggle_play_pause",
        "interval": "change_interval",
        "shuffle": "toggle_shuffle",
        "info": "toggle_info",
        "fullscreen": "toggle_fullscreen",
        "keydown": "handle_key",
        "touchstart": "handle_touch",
        "pointermove": "pointer_moved",
    }

    KEY_BINDINGS = {
        "ArrowRight": "next",
        " ": "next",
        "ArrowLeft": "prev",
        "Escape": "_escape",
        "f": "toggle_fullscreen",
        "F": "toggle_fullscreen",
        "s": "toggle_shuffle",
        "S": "toggle_shuffle",
        "i": "toggle_info",
        "I": "toggle_info",
    }

    def __init__(
        self,
        view: SlideshowView,
        source: ImageSource,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.state = SlideshowState()
        self.view = view
        self.source = source
        self.scheduler = scheduler or LoopScheduler()
        self._rng = rng or random.Random()
        self._now = now
        self._timer: Cancellable | None = None
        self._cursor_timer: Cancellable | None = None
        self._clock_timer: Cancellable | None = None

    @property
    def current_image(self) -> str | None:
        if not self.state.display_images:
            return None
        return self.state.display_images[self.state.current_index]

    @property
    def started(self) -> bool:
        return self.state.phase in (Phase.PLAYING, Phase.PAUSED)

    async def load(self) -> None:
        self.start_clock()
        try:
            images = await self.source.list_images()
        except ImageSourceError as exc:
            logger.error("failed to load images: %s", exc)
            self.state.phase = Phase.EMPTY
            self.view.set_status("Error loading images")
            self.view.disable_start("No Images")
            return

        self.state.images = list(images)
        if not self.state.images:
            self.state.phase = Phase.EMPTY
            self.view.set_status("No images found in the folder")
            self.view.disable_start("No Images")
        else:
            self.state.phase = Phase.READY
            self.view.set_status(f"{len(self.state.images)} images found")

    def update_display_order(self) -> None:
        if self.state.shuffled:
            self.state.display_images = shuffled(self.state.images, self._rng)
        else:
            self.state.display_images = list(self.state.images)
        self.view.set_shuffle_label("Shuffle" if self.state.shuffled else "Order")

    def start(self, shuffle: bool = True) -> None:
        if self.state.phase is not Phase.READY:
            logger.debug("start ignored in phase %s", self.state.phase.value)
            return
        self.state.shuffled = shuffle
        self.update_display_order()
        self.view.hide_start_screen()
        self.state.phase = Phase.PLAYING
        self.state.playing = True
        self.view.set_play_label("Pause")
        self.show_image(0)
        self._start_timer()
        self._request_fullscreen()

    def show_image(self, index: int) -> None:
        if not self.state.display_images:
            return
        self.state.current_index = index % len(self.state.display_images)
        name = self.state.display_images[self.state.current_index]
        self._update_counter()
        self.scheduler.spawn(self._transition(name))
        if self.state.info_visible:
            self.scheduler.spawn(self._fetch_metadata(name))

    def next(self) -> None:
        self.show_image(self.state.current_index + 1)
        if self._timer is not None:
            self._start_timer()

    def prev(self) -> None:
        self.show_image(self.state.current_index - 1)
        if self._timer is not None:
            self._start_timer()

    def toggle_play_pause(self) -> None:
        if not self.started:
            return
        self.state.playing = not self.state.playing
        if self.state.playing:
            self.state.phase = Phase.PLAYING
            self.view.set_play_label("Pause")
            self._start_timer()
        else:
            self.state.phase = Phase.PAUSED
            self.view.set_play_label("Play")
            self._stop_timer()

    def change_interval(self, seconds: float) -> None:
        seconds = float(seconds)
        if not seconds > 0:
            raise ValueError(f"interval must be positive, got {seconds}")
        self.state.interval = seconds
        if self._timer is not None:
            self._start_timer()

    def toggle_shuffle(self) -> None:
        self.state.shuffled = not self.state.shuffled
        if not self.started:
            self.view.set_shuffle_label("Shuffle" if self.state.shuffled else "Order")
            return
        current = self.current_image
        self.update_display_order()
        try:
            self.state.current_index = self.state.display_images.index(current)
        except ValueError:
            self.state.current_index = 0
        self._update_counter()

    def toggle_info(self) -> None:
        self.state.info_visible = not self.state.info_visible
        self.view.set_info_visible(self.state.info_visible)
        name = self.current_image
        if self.state.info_visible and name is not None:
            self.scheduler.spawn(self._fetch_metadata(name))

    def toggle_fullscreen(self) -> None:
        if self.view.is_fullscreen():
            self.view.exit_fullscreen()
        else:
            self._request_fullscreen()

    def pointer_moved(self) -> None:
        self.view.set_cursor_visible(True)
        if self._cursor_timer is not None:
            self._cursor_timer.cancel()
        self._cursor_timer = self.scheduler.after(IDLE_CURSOR_SECONDS, self._hide_cursor)

    def start_clock(self) -> None:
        self._update_clock()
        if self._clock_timer is None:
            self._clock_timer = self.scheduler.every(CLOCK_PERIOD_SECONDS, self._update_clock)

    def handle_key(self, key: str) -> bool:
        action = self.KEY_BINDINGS.get(key)
        if action is None:
            return False
        getattr(self, action)()
        return True

    def handle_touch(self, x: float, screen_width: float) -> None:
        if x > screen_width * 0.7:
            self.next()
        elif x < screen_width * 0.3:
            self.prev()
        else:
            self.toggle_play_pause()

    def dispatch(self, event: str, *args: Any) -> Any:
        handler = self.EVENTS.get(event)
        if handler is None:
            logger.debug("no handler for event %r", event)
            return None
        return getattr(self, handler)(*args)

    def close(self) -> None:
        for timer in (self._timer, self._cursor_timer, self._clock_timer):
            if timer is not None:
                timer.cancel()
        self._timer = self._cursor_timer = self._clock_timer = None

    def _escape(self) -> None:
        if self.started:
            self.toggle_play_pause()

    def _start_timer(self) -> None:
        self._stop_timer()
        self._timer = self.scheduler.every(self.state.interval, self._on_tick)

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_tick(self) -> None:
        self.show_image(self.state.current_index + 1)

    def _update_counter(self) -> None:
        self.view.set_counter(f"{self.state.current_index + 1} / {len(self.state.display_images)}")

    def _update_clock(self) -> None:
        self.view.set_clock(self._now().strftime("%H:%M:%S"))

    def _hide_cursor(self) -> None:
        self._cursor_timer = None
        self.view.set_cursor_visible(False)

    def _request_fullscreen(self) -> None:
        try:
            self.view.request_fullscreen()
        except FullscreenUnavailable as exc:
            logger.info("fullscreen not available: %s", exc)

    async def _transition(self, name: str) -> None:
        # The outgoing slot keeps its image until the incoming one is fully loaded.
        try:
            payload = await self.source.load_image(name)
        except ImageSourceError as exc:
            logger.warning("could not load %s: %s", name, exc)
            return
        if name != self.current_image:
            logger.debug("discarding stale image %s", name)
            return
        incoming = 2 if self.state.active_slot == 1 else 1
        self.view.fill_slot(incoming, name, payload)
        self.view.activate_slot(incoming)
        self.state.active_slot = incoming

    async def _fetch_metadata(self, name: str) -> None:
        try:
            metadata: dict[str, Any] | None = await self.source.get_metadata(name)
        except ImageSourceError as exc:
            logger.warning("could not load metadata for %s: %s", name, exc)
            metadata = None
        if not self.state.info_visible or name != self.current_image:
            logger.debug("discarding stale metadata for %s", name)
            return
        self.view.show_metadata(metadata)
