"""
Process tree termination for build commands.

Build commands run through a shell and may spawn their own children, so
closing a session has to take down the whole tree, not just the shell.
"""

import logging
from typing import List

import psutil

logger = logging.getLogger(__name__)


class TerminationTimeouts:
    """Grace periods for the termination phases, in seconds."""
    GRACEFUL = 3.0
    FORCE = 2.0


def _is_process_alive(process: psutil.Process) -> bool:
    """Safely check if a process is still alive and not a zombie."""
    try:
        if not process.is_running():
            return False
        return process.status() not in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return False


def _get_process_tree(parent: psutil.Process) -> List[psutil.Process]:
    """The parent and all live descendants, tolerating processes that exit meanwhile."""
    processes = [parent]
    try:
        processes.extend(child for child in parent.children(recursive=True) if _is_process_alive(child))
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        pass
    return processes


def terminate_process_tree(
    pid: int,
    name: str,
    graceful_timeout: float = TerminationTimeouts.GRACEFUL,
    force_timeout: float = TerminationTimeouts.FORCE,
) -> None:
    """
    Terminate a process and all its children.

    Sends SIGTERM to the whole tree, waits `graceful_timeout`, then SIGKILLs
    whatever is still alive. Blocking; run it on a worker thread from async
    code.

    Args:
        pid: Process ID of the tree root
        name: Human-readable name for log messages
        graceful_timeout: Seconds to wait after SIGTERM
        force_timeout: Seconds to wait after SIGKILL
    """
    if pid <= 0:
        logger.warning(f"Invalid PID {pid} for {name}, skipping termination")
        return

    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        logger.debug(f"Process {name} (PID: {pid}) already terminated")
        return
    except psutil.AccessDenied:
        logger.warning(f"Access denied to process {name} (PID: {pid})")
        return

    processes = [process for process in _get_process_tree(parent) if _is_process_alive(process)]
    if not processes:
        return
    logger.info(f"Terminating {name} (PID: {pid}) and {len(processes) - 1} children")

    for process in processes:
        try:
            process.terminate()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning(f"Access denied sending SIGTERM to PID {process.pid}")

    _, still_alive = psutil.wait_procs(processes, timeout=graceful_timeout)
    still_alive = [process for process in still_alive if _is_process_alive(process)]
    if not still_alive:
        return

    logger.warning(f"{len(still_alive)} processes of {name} ignored SIGTERM, killing")
    for process in still_alive:
        try:
            process.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning(f"Access denied sending SIGKILL to PID {process.pid}")

    _, stubborn = psutil.wait_procs(still_alive, timeout=force_timeout)
    for process in stubborn:
        logger.error(f"Failed to terminate PID {process.pid} of {name}")
