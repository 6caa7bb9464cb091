from types import SimpleNamespace

import pytest

from pathcraft.core.models import Assertion, Element, InteractionStep, StepType, UserPath


class FakePage:
    """In-memory stand-in for a playwright page."""

    def __init__(self, url="https://example.com/", title="Example Domain", present=("h1", "form")):
        self.url = url
        self.viewport_size = {"width": 1280, "height": 720}
        self.page_title = title
        self.present = set(present)
        self.listeners = {}
        self.visited = []
        self.waits = []
        self.goto_error = None
        self.screenshot_failures = 0
        self.screenshot_calls = 0

    async def goto(self, url, **kwargs):
        if self.goto_error is not None:
            raise self.goto_error
        self.emit("request", SimpleNamespace(url=url, method="GET"))
        self.emit("response", SimpleNamespace(url=url, status=200))
        self.visited.append(url)
        self.url = url

    async def title(self):
        return self.page_title

    async def screenshot(self, **kwargs):
        self.screenshot_calls += 1
        if self.screenshot_failures:
            self.screenshot_failures -= 1
            raise RuntimeError("screenshot failed")
        return b"\x89PNG"

    async def evaluate(self, expression, arg=None):
        return "FakeAgent/1.0"

    async def query_selector_all(self, selector):
        return [object()] if selector in self.present else []

    async def wait_for_timeout(self, timeout):
        self.waits.append(timeout)

    def on(self, event, f):
        self.listeners.setdefault(event, []).append(f)

    def remove_listener(self, event, f):
        self.listeners[event].remove(f)

    def emit(self, event, payload):
        for handler in list(self.listeners.get(event, [])):
            handler(payload)


class TickingClock:
    """Returns seconds, advancing one millisecond per call."""

    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        value = self.now
        self.now += 0.001
        return value


def step(type, selector=None, value=None, timestamp=0, element_type=None, text=None, **kwargs):
    element = None
    if selector is not None:
        element = Element(selector=selector, type=element_type or "text-input", text=text)
    return InteractionStep(
        type=StepType(type),
        element=element,
        value=value,
        timestamp=timestamp,
        action=kwargs.pop("action", f"{type} {selector or value}"),
        **kwargs,
    )


def login_path(**kwargs):
    return UserPath(
        name=kwargs.pop("name", "Login Flow"),
        start_url="https://example.com/login",
        steps=[
            step("navigation", value="/login", timestamp=0, action="Navigate to /login"),
            step("type", "#user", "bob", timestamp=100, action='Type "bob" into #user'),
            step("click", "#submit", timestamp=200, element_type="button", text="Submit", action='Click button "Submit"'),
        ],
        assertions=kwargs.pop("assertions", []),
        **kwargs,
    )


@pytest.fixture
def fake_page():
    return FakePage()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def make_step():
    return step


@pytest.fixture
def make_login_path():
    return login_path


@pytest.fixture
def url_assertion():
    return Assertion(type="url", target="page", expected="/dashboard", operator="contains")
