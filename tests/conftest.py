from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from slideshow.controller import SlideshowController
from slideshow.errors import FullscreenUnavailable, ImageSourceError
from slideshow.main import create_app


def write_image(path: Path, size: tuple[int, int] = (1, 1), fmt: str = "PNG", exif: Image.Exif | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    image = Image.new("RGB", size, "red")
    if exif is not None:
        image.save(path, format=fmt, exif=exif)
    else:
        image.save(path, format=fmt)
    return path


@pytest.fixture
def images_dir(tmp_path: Path) -> Path:
    folder = tmp_path / "images"
    folder.mkdir()
    return folder


@pytest.fixture
def client(images_dir: Path) -> TestClient:
    return TestClient(create_app(images_dir))


class FakeHandle:
    def __init__(self, interval: float, callback) -> None:
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    def __init__(self) -> None:
        self.timers: list[FakeHandle] = []
        self.delayed: list[FakeHandle] = []
        self.pending: list[Any] = []

    def every(self, interval, callback) -> FakeHandle:
        handle = FakeHandle(interval, callback)
        self.timers.append(handle)
        return handle

    def after(self, delay, callback) -> FakeHandle:
        handle = FakeHandle(delay, callback)
        self.delayed.append(handle)
        return handle

    def spawn(self, coro) -> None:
        self.pending.append(coro)

    def run_pending(self) -> None:
        async def drain() -> None:
            while self.pending:
                await self.pending.pop(0)

        asyncio.run(drain())

    def discard_pending(self) -> None:
        for coro in self.pending:
            coro.close()
        self.pending.clear()


class FakeView:
    def __init__(self) -> None:
        self.status = ""
        self.start_label: str | None = None
        self.start_hidden = False
        self.slots: dict[int, tuple[str, bytes]] = {}
        self.active_slot: int | None = None
        self.counter = ""
        self.play_label = ""
        self.shuffle_label = ""
        self.info_visible = False
        self.metadata: list[dict[str, Any] | None] = []
        self.cursor_visible = False
        self.clock = ""
        self.fullscreen = False
        self.fullscreen_available = True
        self.fullscreen_requests = 0

    def set_status(self, text):
        self.status = text

    def disable_start(self, label):
        self.start_label = label

    def hide_start_screen(self):
        self.start_hidden = True

    def fill_slot(self, slot, name, payload):
        self.slots[slot] = (name, payload)

    def activate_slot(self, slot):
        self.active_slot = slot

    def set_counter(self, text):
        self.counter = text

    def set_play_label(self, text):
        self.play_label = text

    def set_shuffle_label(self, text):
        self.shuffle_label = text

    def set_info_visible(self, visible):
        self.info_visible = visible

    def show_metadata(self, metadata):
        self.metadata.append(metadata)

    def set_cursor_visible(self, visible):
        self.cursor_visible = visible

    def set_clock(self, text):
        self.clock = text

    def is_fullscreen(self):
        return self.fullscreen

    def request_fullscreen(self):
        self.fullscreen_requests += 1
        if not self.fullscreen_available:
            raise FullscreenUnavailable("not allowed")
        self.fullscreen = True

    def exit_fullscreen(self):
        self.fullscreen = False

    @property
    def shown(self) -> str | None:
        if self.active_slot is None:
            return None
        return self.slots[self.active_slot][0]


class FakeSource:
    def __init__(self, images: list[str] | None = None, fail: bool = False) -> None:
        self.images = images or []
        self.fail = fail
        self.metadata_requests: list[str] = []

    async def list_images(self) -> list[str]:
        if self.fail:
            raise ImageSourceError("connection refused")
        return list(self.images)

    async def load_image(self, name: str) -> bytes:
        return name.encode()

    async def get_metadata(self, name: str) -> dict[str, Any]:
        self.metadata_requests.append(name)
        return {"filename": name}


@pytest.fixture
def scheduler():
    sched = FakeScheduler()
    yield sched
    sched.discard_pending()


@pytest.fixture
def view() -> FakeView:
    return FakeView()


@pytest.fixture
def make_controller(view, scheduler):
    def factory(images: list[str], fail: bool = False) -> SlideshowController:
        controller = SlideshowController(view, FakeSource(images, fail), scheduler)
        asyncio.run(controller.load())
        return controller

    return factory
