"""Describe the host the benchmark runs on."""

import os
import platform
from pathlib import Path
from typing import Dict, Union

import psutil

from .sizes import format_size


def describe_environment(target_dir: Union[str, Path]) -> Dict[str, object]:
    """
    Collect the facts that make benchmark numbers comparable between hosts.

    Args:
        target_dir: Directory the workers write to; its volume is inspected
            for free space. It must exist.

    Returns:
        Mapping of label to value, in display order
    """
    memory = psutil.virtual_memory()
    disk = psutil.disk_usage(str(target_dir))
    return {
        "OSDescription": platform.platform(),
        "OSArchitecture": platform.machine(),
        "PythonImplementation": f"{platform.python_implementation()} {platform.python_version()}",
        "ProcessorCount": os.cpu_count() or 1,
        "TotalMemory": format_size(memory.total),
        "TargetDirectory": str(target_dir),
        "TargetFreeSpace": format_size(disk.free),
    }


def format_environment(info: Dict[str, object]) -> str:
    return ", ".join(f"{key}:{value}" for key, value in info.items())
