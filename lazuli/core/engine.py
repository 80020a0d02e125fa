# lazuli/core/engine.py
from __future__ import annotations

"""Wait engine
--------------
Compiles wait descriptors into predicates, polls their one_of/all_of
combination until (or while) it holds, and reports every descriptor that is
satisfied once the poll is over.
"""

from typing import Any, Callable, Optional

from lazuli.dom import Document, Element
from lazuli.errors import InvalidRequest, WaitTimeout
from lazuli.selectors.filters import content_matches
from lazuli.selectors.resolver import SelectorResolver
from lazuli.utils.config import get_settings
from lazuli.utils.logger import get_logger, log_with_context
from lazuli.utils.timing import measure, wait_until, wait_while
from lazuli.core.wait_request import (
    WaitCondition,
    WaitDescriptor,
    WaitOperator,
    WaitOutcome,
    WaitRequest,
)

Predicate = Callable[[], Any]
ScreenshotHook = Callable[[], Any]


def _check_present(e: Element) -> bool:
    return e.is_present()


def _check_exists(e: Element) -> bool:
    return e.exists()


# Named element checks; other names are looked up as element methods
CHECKS: dict[str, Callable[[Element], Any]] = {
    "present": _check_present,
    "visible": _check_present,
    "exists": _check_exists,
    "exist": _check_exists,
}


def run_check(element: Element, check: Any) -> bool:
    if callable(check):
        return bool(check(element))
    fn = CHECKS.get(check)
    if fn is not None:
        return bool(fn(element))
    method = getattr(element, check, None)
    if not callable(method):
        method = getattr(element, f"is_{check}", None)
    if not callable(method):
        raise InvalidRequest(f"Elements have no '{check}' check.", groups=["wait"], settings=check)
    return bool(method())


class WaitEngine:
    """
    Polls a WaitRequest against a document.

    Usage:
        engine = WaitEngine()
        outcome = engine.wait_for(build_wait_request({"tag_name": "div", "id": "bar"}), document)
    """

    def __init__(
        self,
        resolver: Optional[SelectorResolver] = None,
        interval_ms: Optional[int] = None,
    ) -> None:
        self.resolver = resolver or SelectorResolver()
        self.interval_ms = interval_ms if interval_ms is not None else get_settings().POLL_INTERVAL_MS
        self.log = get_logger(__name__)

    # ---------- Compilation ----------

    def compile(self, descriptor: WaitDescriptor, document: Document) -> Predicate:
        """
        A zero-argument predicate returning the matched element (or the
        document for a whole-document descriptor), or False.
        """
        spec = descriptor.selector
        if spec is not None:
            spec = spec.model_copy(update={"error_on_miss": False, "only_present": False})

        def matcher() -> Any:
            if spec is None:
                target: Any = document
            else:
                target = self.resolver.resolve_one(spec, document)
                if target is None:
                    return False
                try:
                    if not run_check(target, descriptor.satisfied_when):
                        return False
                except InvalidRequest:
                    raise
                except Exception as e:
                    # element went stale between lookup and check
                    self.log.debug(f"Check {descriptor.satisfied_when!r} failed: {e!r}")
                    return False

            if descriptor.content_match is None:
                return target
            if _content_ok(target, descriptor.content_match):
                return target
            return False

        return matcher

    @staticmethod
    def combine(predicates: list[Predicate], operator: WaitOperator) -> Callable[[], bool]:
        if operator == WaitOperator.all_of:
            def all_of() -> bool:
                for func in predicates:
                    if not func():
                        return False
                return True
            return all_of

        if operator == WaitOperator.one_of:
            def one_of() -> bool:
                for func in predicates:
                    if func():
                        return True
                return False
            return one_of

        raise InvalidRequest(f"Invalid operator '{operator}'.", groups=["wait"], settings=operator)

    # ---------- Polling ----------

    @measure("wait_for")
    def wait_for(
        self,
        request: WaitRequest,
        document: Document,
        screenshot: Optional[ScreenshotHook] = None,
    ) -> WaitOutcome:
        """
        Poll until the combined condition is met or the timeout expires.

        A timeout is only an error when no descriptor is satisfied afterwards;
        otherwise the satisfied ones are returned with `timed_out` set.

        Raises:
            WaitTimeout when the poll timed out and nothing matched.
        """
        groups = request.groups or ["wait"]
        log = log_with_context(self.log, groups=groups)

        predicates = [self.compile(d, document) for d in request.descriptors]
        block = self.combine(predicates, request.operator)

        err: Optional[TimeoutError] = None
        try:
            if request.condition == WaitCondition.until:
                wait_until(block, request.timeout_ms, self.interval_ms, description=request.operator.value)
            else:
                wait_while(block, request.timeout_ms, self.interval_ms, description=request.operator.value)
        except TimeoutError as e:
            log.debug(f"Caught timeout: {e}")
            err = e

        results = []
        for func in predicates:
            res = func()
            if res:
                results.append(res)

        if err is not None and not results:
            shot = None
            if request.screenshot and screenshot is not None:
                shot = _safe_screenshot(screenshot, log)
            raise WaitTimeout(
                f"Timed out after {request.timeout:g} s waiting {request.condition.value} "
                f"{request.operator.value} of {len(request.descriptors)} element(s)",
                groups=groups,
                settings=request,
                cause=err,
                screenshot=shot,
            )

        return WaitOutcome(matched=results, timed_out=err is not None, cause=err)


def _content_ok(target: Any, expected: Any) -> bool:
    if content_matches(target.text(), expected):
        return True
    return content_matches(target.markup(), expected)


def _safe_screenshot(hook: ScreenshotHook, log) -> Any:
    try:
        return hook()
    except Exception as e:
        log.debug(f"Screenshot on timeout failed: {e!r}")
        return None


__all__ = ["WaitEngine", "CHECKS", "run_check"]
