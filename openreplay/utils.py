import os
from datetime import datetime
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    import cProfile


def profiling_start(profiling_enabled: bool) -> "Optional[cProfile.Profile]":
    """Start profiling if enabled.

    Args:
        profiling_enabled: Whether to enable profiling.

    Returns:
        Profile object if enabled, None otherwise.
    """
    if profiling_enabled:
        import cProfile

        pr = cProfile.Profile()
        pr.enable()
        return pr
    return None


def profiling_end(
    pr: "Optional[cProfile.Profile]", identifier: str, directory: str = "profiling"
) -> Optional[str]:
    """Stop profiling and dump the stats for snakeviz.

    Args:
        pr: Profile object from profiling_start, or None.
        identifier: Suffix of the stats file, e.g. "replay".
        directory: Directory receiving `<timestamp>_<identifier>.prof`.
            Created if needed.

    Returns:
        Path of the written stats file, or None if profiling was off.
    """
    if pr is None:
        return None
    pr.disable()
    os.makedirs(directory, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = os.path.join(directory, f"{timestamp}_{identifier}.prof")
    pr.dump_stats(path)
    return path
