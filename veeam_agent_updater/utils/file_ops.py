import os
import shutil
import threading
import logging

from typing import Any, Callable, Tuple

logger = logging.getLogger(__name__)


class OperationTimeout(Exception):
    pass


def call_with_timeout(func: Callable, timeout: float, *args, **kwargs) -> Any:
    """
    Run func in a daemon thread and wait at most timeout seconds for it.
    Raises OperationTimeout when the call did not finish in time; the worker is left behind
    since a blocked SMB call cannot be interrupted from Python.
    """
    result = [None]
    error = [None]
    done = threading.Event()

    def target():
        try:
            result[0] = func(*args, **kwargs)
        except BaseException as e:
            error[0] = e
        finally:
            done.set()

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    thread.join(timeout=timeout)

    if not done.is_set():
        raise OperationTimeout(f"{getattr(func, '__name__', func)} did not finish within {timeout}s")
    if error[0] is not None:
        raise error[0]
    return result[0]


def path_exists(path: str, timeout: float) -> bool:
    try:
        return call_with_timeout(os.path.exists, timeout, path)
    except OperationTimeout as e:
        logger.warning(f"Existence check timed out for {path}: {e}")
        return False


def copy_file(src: str, dst: str, timeout: float) -> Tuple[bool, str]:
    """
    Copy src over dst keeping metadata. Returns (success, error message).
    OperationTimeout is raised, not returned: the abandoned copy may still write dst later.
    """
    try:
        call_with_timeout(shutil.copy2, timeout, src, dst)
        logger.debug(f"Copied file from {src} to {dst}")
        return True, ""
    except OSError as e:
        logger.error(f"Failed to copy file from {src} to {dst}: {e}")
        return False, str(e)
