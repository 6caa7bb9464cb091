from typing import Any, Dict, Optional, Tuple

from playwright.async_api import async_playwright

from pathcraft.core.constants import DEFAULT_BROWSER, DEFAULT_BROWSER_TIMEOUT, DEFAULT_USER_AGENT, DEFAULT_VIEWPORT
from pathcraft.core.logging import log
from pathcraft.core.models import Element, InteractionResult
from pathcraft.recording.recorder import UserPathRecorder

BRIDGE_FUNCTION = "pathcraftRecord"

# Reports user clicks and value changes to the Python side as element descriptors.
BRIDGE_SCRIPT = """
(() => {
  const cssPath = (el) => {
    if (el.id) return '#' + CSS.escape(el.id);
    if (el.getAttribute('data-testid')) return `[data-testid="${el.getAttribute('data-testid')}"]`;
    if (el.name) return `${el.tagName.toLowerCase()}[name="${el.name}"]`;
    const parts = [];
    let node = el;
    while (node && node.nodeType === 1 && node !== document.body) {
      let part = node.tagName.toLowerCase();
      const parent = node.parentElement;
      if (parent) {
        const same = Array.from(parent.children).filter((c) => c.tagName === node.tagName);
        if (same.length > 1) part += `:nth-of-type(${same.indexOf(node) + 1})`;
      }
      parts.unshift(part);
      node = parent;
    }
    return parts.join(' > ');
  };
  const kind = (el) => {
    const tag = el.tagName.toLowerCase();
    const type = (el.getAttribute('type') || '').toLowerCase();
    if (tag === 'a') return 'link';
    if (tag === 'select') return 'select';
    if (tag === 'textarea') return 'textarea';
    if (tag === 'button' || (tag === 'input' && ['button', 'submit', 'reset'].includes(type))) return 'button';
    if (tag === 'input' && (type === 'checkbox' || type === 'radio')) return type;
    if (tag === 'input' && type === 'password') return 'password-input';
    if (tag === 'input') return 'text-input';
    return tag;
  };
  const describe = (el, value) => {
    const attributes = {};
    for (const attr of el.attributes) attributes[attr.name] = attr.value;
    const label = el.labels && el.labels.length ? el.labels[0].innerText.trim() : null;
    return {
      selector: cssPath(el),
      type: kind(el),
      text: (el.innerText || el.value || '').trim().slice(0, 100) || null,
      label,
      attributes,
      value,
    };
  };
  document.addEventListener('click', (e) => {
    const el = e.target.closest('a, button, input[type=button], input[type=submit], [role=button]') || e.target;
    if (['text-input', 'textarea', 'select', 'checkbox', 'radio'].includes(kind(el))) return;
    window.%(name)s(describe(el, null));
  }, true);
  document.addEventListener('change', (e) => {
    const el = e.target;
    const value = el.type === 'checkbox' || el.type === 'radio' ? el.checked : el.value;
    window.%(name)s(describe(el, value));
  }, true);
})();
""" % {"name": BRIDGE_FUNCTION}


def interaction_from_event(payload: Dict[str, Any]) -> Tuple[Element, InteractionResult]:
    """Turn a bridge payload into the recorder's inputs."""
    element = Element(
        selector=payload["selector"],
        type=payload.get("type") or "unknown",
        text=payload.get("text"),
        label=payload.get("label"),
        attributes=payload.get("attributes") or {},
    )
    return element, InteractionResult(success=True, value=payload.get("value"))


class BrowserManager:
    """
    Manages the Playwright browser session used for recording.
    """
    def __init__(
        self,
        headless: bool = True,
        browser: str = DEFAULT_BROWSER,
        viewport: Optional[Dict[str, int]] = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.headless = headless
        self.browser_name = browser
        self.viewport = viewport or dict(DEFAULT_VIEWPORT)
        self.user_agent = user_agent
        self.playwright = None
        self.browser = None
        self.context = None
        self.page = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        """Start the browser session."""
        self.playwright = await async_playwright().start()
        browser_type = getattr(self.playwright, self.browser_name)
        self.browser = await browser_type.launch(headless=self.headless)
        self.context = await self.browser.new_context(
            user_agent=self.user_agent,
            viewport=self.viewport,
        )
        self.context.set_default_timeout(DEFAULT_BROWSER_TIMEOUT * 1000)
        self.page = await self.context.new_page()
        log(f"Browser started ({self.browser_name}, headless={self.headless})", level="debug")

    async def close(self) -> None:
        """Close the browser session."""
        if self.context:
            await self.context.close()
        if self.browser:
            await self.browser.close()
        if self.playwright:
            await self.playwright.stop()
        self.context = self.browser = self.playwright = self.page = None

    async def start_interactive_recording(self, recorder: UserPathRecorder) -> None:
        """Forward user clicks and edits on the page to ``recorder``."""
        async def on_event(payload: Dict[str, Any]) -> None:
            element, result = interaction_from_event(payload)
            log(f"Recorded: {element.type} on {element.selector}", level="debug")
            await recorder.record_interaction(element, result)

        await self.page.expose_function(BRIDGE_FUNCTION, on_event)
        await self.page.add_init_script(BRIDGE_SCRIPT)
        # The init script only runs on future documents
        await self.page.evaluate(BRIDGE_SCRIPT)
