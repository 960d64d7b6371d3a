"""
Run-Mode Controller

Decides, once at startup, between a single build (exit 0/1) and the
continuous watch loop. Both modes own exactly one build session, opened
before any task runs and closed when the mode ends.
"""

import asyncio
import time
from enum import Enum
from typing import Any, Callable, Optional

from omegaconf import DictConfig, OmegaConf

from relaxed.contexts.orchestration.dispatcher import TaskDispatcher
from relaxed.contexts.orchestration.logger import (
    _log_info,
    _log_success,
    log_task_failed,
)
from relaxed.contexts.orchestration.paths import DocumentPaths
from relaxed.contexts.orchestration.watcher import WatchLoop
from relaxed.contexts.rendering import converters as default_converters
from relaxed.contexts.rendering.session import BuildSession
from relaxed.utils.event_logging import log_build_event

# Called as session_factory(headless=..., sandbox=..., extra_args=...) and
# used as an async context manager yielding an object with a `page`.
SessionFactory = Callable[..., Any]


class RunMode(Enum):
    BUILD_ONCE = "build_once"
    WATCH = "watch"


def _session_options(config: DictConfig, sandbox: bool) -> dict:
    return {
        "headless": config.browser.headless,
        "sandbox": sandbox,
        "extra_args": list(config.browser.extra_args),
    }


def _make_dispatcher(page, paths: DocumentPaths, config: DictConfig, converters) -> TaskDispatcher:
    return TaskDispatcher(
        page,
        paths,
        converters=converters,
        pdf_options=OmegaConf.to_container(config.pdf, resolve=True),
        libraries=OmegaConf.to_container(config.libraries, resolve=True),
    )


async def build_once(
    paths: DocumentPaths,
    config: DictConfig,
    sandbox: bool = True,
    session_factory: SessionFactory = BuildSession.launch,
    converters: Any = default_converters,
) -> int:
    """
    Build the master document exactly once.

    Returns:
        Exit code: 0 on success, 1 if the session or the build failed
    """
    _log_info("Building the document...")
    log_build_event("build_started", paths.input_path, source="build-once")
    start_time = time.perf_counter()

    try:
        async with session_factory(**_session_options(config, sandbox)) as session:
            dispatcher = _make_dispatcher(session.page, paths, config, converters)
            await dispatcher.build_master()
    except Exception as e:
        elapsed_time = time.perf_counter() - start_time
        log_task_failed(paths.input_path.name, e, elapsed_time)
        log_build_event("build_failed", paths.input_path, source="build-once", error=str(e))
        return 1

    elapsed_time = time.perf_counter() - start_time
    _log_success(f"... done in {elapsed_time:.2f}s!")
    log_build_event(
        "build_completed",
        paths.input_path,
        source="build-once",
        duration_s=round(elapsed_time, 2),
    )
    return 0


async def watch(
    paths: DocumentPaths,
    config: DictConfig,
    sandbox: bool = True,
    session_factory: SessionFactory = BuildSession.launch,
    converters: Any = default_converters,
    stop_event: Optional[asyncio.Event] = None,
) -> int:
    """
    Launch the session and rebuild on every change until stopped.

    Without a stop_event this only returns when interrupted.

    Returns:
        Exit code 0
    """
    async with session_factory(**_session_options(config, sandbox)) as session:
        loop = WatchLoop(
            _make_dispatcher(session.page, paths, config, converters),
            paths.watch_roots,
            stability_threshold_ms=config.watch.stability_threshold_ms,
            debounce_ms=config.watch.debounce_ms,
            force_polling=config.watch.force_polling,
            poll_delay_ms=config.watch.poll_delay_ms,
        )
        await loop.run(stop_event)
    return 0


def run(paths: DocumentPaths, config: DictConfig, mode: RunMode, sandbox: bool = True) -> int:
    """Run the selected mode on a fresh event loop and return the exit code."""
    if mode is RunMode.BUILD_ONCE:
        return asyncio.run(build_once(paths, config, sandbox=sandbox))
    return asyncio.run(watch(paths, config, sandbox=sandbox))
