"""Personal productivity command-line tools.

Every tool keeps its data in its own directory under the configured data dir:

    <data_dir>/
        tasks/        tasks.json
        inbox/        inbox.json
        timelog/      timelog.csv, active.json
        journal/      entries/YYYY-MM-DD.md, index.json
        ...

Writes go through prodkit.store (tmp file + flock + rename).
"""

from prodkit.config import ProdkitConfig, init_config, load_config
from prodkit.store import JsonStore, StoreError

__all__ = ["JsonStore", "ProdkitConfig", "StoreError", "init_config", "load_config"]
