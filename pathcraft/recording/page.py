"""The page capability consumed by the recorder.

``playwright.async_api.Page`` satisfies this protocol as is, so a live page
can be handed straight to ``UserPathRecorder.start_recording``.
"""

from typing import Any, Callable, Dict, List, Optional, Protocol


class PageCapability(Protocol):
    @property
    def url(self) -> str: ...

    @property
    def viewport_size(self) -> Optional[Dict[str, int]]: ...

    async def goto(self, url: str, **kwargs: Any) -> Any: ...

    async def title(self) -> str: ...

    async def screenshot(self, **kwargs: Any) -> bytes: ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any: ...

    async def query_selector_all(self, selector: str) -> List[Any]: ...

    async def wait_for_timeout(self, timeout: float) -> None: ...

    def on(self, event: str, f: Callable[..., Any]) -> None: ...

    def remove_listener(self, event: str, f: Callable[..., Any]) -> None: ...
