from dataclasses import dataclass


@dataclass
class ReplayConfig:

    def __init__(
        self,
        n_workers: int = 1,
        allow_missing_columns: bool = False,
        allow_extra_columns: bool = False,
    ):
        """
        Configuration class for trajectory replay.

        Main arguments:
        These are the arguments most commonly used day-to-day.

        Args:
            n_workers (int): Number of worker threads used to evaluate rows. Rows are independent,
                so they can be evaluated concurrently; the report keeps trajectory order regardless.
                Defaults to 1 (sequential).

        Other arguments:
        These control how a states table is turned into a trajectory.

        Args:
            allow_missing_columns (bool): Fill state variables that have no column in the states
                table with their default value instead of raising. Defaults to False.
            allow_extra_columns (bool): Ignore states table columns that are not state variables of
                the model instead of raising. Defaults to False.
        """
        if n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {n_workers}")
        self.n_workers = n_workers
        self.allow_missing_columns = allow_missing_columns
        self.allow_extra_columns = allow_extra_columns


@dataclass
class DevConfig:

    def __init__(
        self, profiling: bool = False, printing: bool = False, profiling_dir: str = "profiling"
    ):
        """
        Configuration class for development settings.

        Args:
            profiling (bool): Whether to profile the replay with cProfile. Results are written to
                `<profiling_dir>/<timestamp>_replay.prof`. Defaults to False.
            printing (bool): Whether to print a summary of the replay to the console. Defaults to False.
            profiling_dir (str): Directory for profiling results, relative to the working directory
                unless absolute. Defaults to "profiling".
        """
        self.profiling = profiling
        self.printing = printing
        self.profiling_dir = profiling_dir


@dataclass
class Config:

    def __init__(self, replay: ReplayConfig = None, dev: DevConfig = None):
        """
        Top-level configuration for `analyze` and the replay driver.

        Args:
            replay (ReplayConfig, optional): Replay settings. Defaults to `ReplayConfig()`.
            dev (DevConfig, optional): Development settings. Defaults to `DevConfig()`.
        """
        self.replay = replay if replay is not None else ReplayConfig()
        self.dev = dev if dev is not None else DevConfig()
