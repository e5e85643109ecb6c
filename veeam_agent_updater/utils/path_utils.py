import ntpath
import time

RUN_TIMESTAMP_FORMAT = "%Y_%m_%d_%H_%M_%S"


def make_run_timestamp(now: float = None) -> str:
    return time.strftime(RUN_TIMESTAMP_FORMAT, time.localtime(now if now is not None else time.time()))


def normalize_template(template: str) -> str:
    """Turn forward slashes into backslashes and strip leading separators"""
    return template.replace("/", "\\").strip().lstrip("\\")


def unc_path(host: str, admin_share: str, template: str) -> str:
    r"""Build \\<host>\<admin_share>\<template>"""
    share = admin_share.strip("\\")
    return ntpath.join(f"\\\\{host}\\{share}", normalize_template(template))


def backup_path(remote_path: str, run_timestamp: str) -> str:
    return f"{remote_path}_{run_timestamp}"
