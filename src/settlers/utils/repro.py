from __future__ import annotations

import os
import random

import numpy as np


def seed_everything(seed: int) -> random.Random:
    """Seed the global generators and return a dedicated one for the engine."""
    os.environ["PYTHONHASHSEED"] = str(seed)
    random.seed(seed)
    np.random.seed(seed)
    return random.Random(seed)
