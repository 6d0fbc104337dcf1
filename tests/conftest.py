"""Pytest configuration and shared fixtures."""
import numpy as np
import pandas as pd
import pytest

from urbankfs.models import FittedModelReplicate, ModelConfig
from urbankfs.preprocessing import soil_type_levels


class FixedModel:
    """Model handle returning fixed predictions and counting calls."""

    def __init__(self, values):
        self.values = np.asarray(values, dtype=float)
        self.ncalls = 0

    def predict(self, X):
        self.ncalls += 1
        return self.values


class FailingModel:
    """Model handle that fails on every call."""

    def predict(self, X):
        raise ValueError("X has 3 features, but model is expecting 4 features as input")


def make_replicate(model_type, sample_id, model_fit, **kwargs):
    return FittedModelReplicate(sample_id, ModelConfig.from_label(model_type), model_fit, **kwargs)


@pytest.fixture
def blocky_records():
    """Two blocky soil records."""
    return pd.DataFrame({
        "Percent_Sand": [14.0, 18.0],
        "Percent_Silt": [63.0, 59.0],
        "Percent_Clay": [23.0, 23.0],
        "Top_Type": ["blocky", "blocky"],
    })


@pytest.fixture
def soil_records():
    """Small set of soil records with all predictor columns."""
    return pd.DataFrame({
        "Percent_Sand": [14.0, 15.0, 18.0, 45.0, 70.0],
        "Percent_Silt": [63.0, 15.0, 59.0, 40.0, 20.0],
        "Percent_Clay": [23.0, 70.0, 23.0, 15.0, 10.0],
        "Percent_Rock_Fragment": [0.0, 5.0, 2.5, 10.0, 0.0],
        "Top_Type": ["blocky", "granular", "platy", "single grain", "massive"],
    })


@pytest.fixture
def train_data():
    """Synthetic training data with Kfs increasing with sand and decreasing with clay."""
    rng = np.random.default_rng(42)
    n = 60
    sand = rng.uniform(10, 70, n)
    clay = rng.uniform(5, 30, n)
    return pd.DataFrame({
        "Percent_Sand": sand,
        "Percent_Silt": 100 - sand - clay,
        "Percent_Clay": clay,
        "Percent_Rock_Fragment": rng.uniform(0, 20, n),
        "Top_Type": rng.choice(soil_type_levels(), n),
        "Unsaturated_K2cm_cmhr": np.exp(0.03 * sand - 0.05 * clay + rng.normal(0, 0.2, n)),
    })
