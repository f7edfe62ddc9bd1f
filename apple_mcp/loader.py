"""
Backend loading and startup mode selection.

At startup the server tries to build every backend within ``load_timeout``
seconds ("eager" mode). If that times out or fails, backends are built on
first use instead ("lazy" mode). Either way the outcome is an ``InitResult``
handed to the dispatcher.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from apple_mcp.config import Settings

logger = logging.getLogger("apple_mcp.loader")

MODE_EAGER = "eager"
MODE_LAZY = "lazy"


class ModuleLoader:
    """Builds named backends once and caches them."""

    def __init__(self, factories: Dict[str, Callable[[], Any]]):
        self._factories = dict(factories)
        self._modules: Dict[str, Any] = {}
        self._lock = threading.Lock()

    @property
    def names(self):
        return list(self._factories)

    def is_loaded(self, name: str) -> bool:
        with self._lock:
            return name in self._modules

    def get(self, name: str) -> Any:
        """Return backend ``name``, building it on first use."""
        if name not in self._factories:
            raise KeyError(f"Unknown module: {name}")
        with self._lock:
            module = self._modules.get(name)
            if module is None:
                logger.info(f"Loading {name} on demand (safe mode)")
                module = self._factories[name]()
                self._modules[name] = module
            return module

    def build_all(self) -> Dict[str, Any]:
        """Build every backend without touching the cache."""
        return {name: factory() for name, factory in self._factories.items()}

    def install(self, modules: Dict[str, Any]) -> None:
        with self._lock:
            for name, module in modules.items():
                self._modules.setdefault(name, module)


@dataclass
class InitResult:
    mode: str
    loader: ModuleLoader
    error: Optional[str] = None


def initialize(loader: ModuleLoader, timeout: float = 5.0) -> InitResult:
    """
    Try to build all backends within ``timeout`` seconds.

    A late eager build keeps running in its worker thread but its result is
    never installed, so lazy mode never sees a half-loaded cache.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="apple-mcp-init")
    future = executor.submit(loader.build_all)
    try:
        modules = future.result(timeout=timeout)
    except FutureTimeoutError:
        logger.warning(f"Eager loading exceeded {timeout:.1f}s, switching to lazy loading")
        return InitResult(mode=MODE_LAZY, loader=loader, error=f"Loading timed out after {timeout:.1f}s")
    except Exception as e:
        logger.warning(f"Eager loading failed ({e}), switching to lazy loading")
        return InitResult(mode=MODE_LAZY, loader=loader, error=str(e))
    finally:
        executor.shutdown(wait=False)

    loader.install(modules)
    logger.info(f"Loaded {', '.join(modules)} eagerly")
    return InitResult(mode=MODE_EAGER, loader=loader)


def build_default_loader(settings: Optional[Settings] = None) -> ModuleLoader:
    from apple_mcp.contacts import ContactsBackend
    from apple_mcp.messages import MessagesBackend
    from apple_mcp.reminders import RemindersBackend

    settings = settings or Settings()
    return ModuleLoader({
        "contacts": lambda: ContactsBackend(settings),
        "messages": lambda: MessagesBackend(settings),
        "reminders": lambda: RemindersBackend(settings),
    })
