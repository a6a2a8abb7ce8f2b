import asyncio

import pytest

from common.schemas import Notification, ResultBatch, ResultChunk
from recognizer.capability import UNSUPPORTED
from recognizer.controller import SessionController
from recognizer.events import Ended, EventDispatcher


def make_batch(start_index, *chunks):
    """Build a batch from (text, is_final) pairs."""
    return ResultBatch(
        start_index=start_index,
        chunks=[
            ResultChunk(index=start_index + i, text=text, is_final=final)
            for i, (text, final) in enumerate(chunks)
        ],
    )


class FakeHandle:
    """Handle whose events are pushed by the test."""

    def __init__(self):
        self.dispatcher = EventDispatcher()
        self.deactivate_calls = 0

    def subscribe(self, listener):
        self.dispatcher.subscribe(listener)

    def deactivate(self):
        self.deactivate_calls += 1

    def emit(self, event):
        self.dispatcher.emit(event)


class FakeCapability:
    def __init__(self, supported=True, fail_with=None):
        self.supported = supported
        self.fail_with = fail_with
        self.activations = []
        self.handles = []

    def activate(self, language, continuous, interim_results, max_alternatives):
        self.activations.append((language, continuous, interim_results, max_alternatives))
        if self.fail_with is not None:
            raise self.fail_with
        if not self.supported:
            return UNSUPPORTED
        handle = FakeHandle()
        self.handles.append(handle)
        return handle

    @property
    def handle(self):
        return self.handles[-1]


class ScriptedHandle:
    """Replays a fixed event script on the running loop once subscribed."""

    def __init__(self, script):
        self._script = list(script)
        self._dispatcher = EventDispatcher()

    def subscribe(self, listener):
        self._dispatcher.subscribe(listener)
        loop = asyncio.get_running_loop()
        for event in self._script:
            loop.call_soon(self._dispatcher.emit, event)

    def deactivate(self):
        asyncio.get_running_loop().call_soon(self._dispatcher.emit, Ended())


class ScriptedCapability:
    def __init__(self, script):
        self.script = script

    def activate(self, language, continuous, interim_results, max_alternatives):
        return ScriptedHandle(self.script)


@pytest.fixture
def capability():
    return FakeCapability()


@pytest.fixture
def controller(capability):
    return SessionController(capability)


@pytest.fixture
def notifications(controller):
    received: list[tuple[Notification, object]] = []
    controller.subscribe(lambda n, snap: received.append((n, snap)))
    return received
