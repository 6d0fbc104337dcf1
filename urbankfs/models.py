"""
Model configurations, fitted bootstrap replicates and the prediction adapters
that apply a fitted replicate to soil records.

Model types:
- ann:  neural network with sand, silt and clay
- annr: neural network with sand, silt, clay and rock fragments
- rf1:  random forest with sand, silt and clay
- rf1r: random forest with sand, silt, clay and rock fragments
- rf2:  random forest with sand, silt, clay and structure type
- rf2r: random forest with sand, silt, clay, rock fragments and structure type

Neural network outputs are min-max scaled and converted back with the replicate's scale factors,
random forests predict the target directly.

This package is part of the machine learning project for predicting hydraulic conductivity of urban soils.

Copyright 2023 Alexey Shiklomanov

This open-source software is released under the MIT License.
"""

from dataclasses import dataclass
from functools import partial
from typing import Any, Optional, Tuple

import numpy as np
import pandas as pd

from .errors import PredictionError, UrbanKfsError, ValidationError
from .model_ann import ann_predict, check_scale_factors
from .model_rf import rf_predict
from .preprocessing import encode_features

MODEL_FAMILIES = ('ann', 'rf')

# Columns of a replicate collection dataframe
REPLICATE_COLUMNS = ['sample_id', 'model_type', 'model_fit', 'scale_factors', 'log_target']


@dataclass(frozen = True)
class ModelConfig:
    """Model family and the features a model is fitted with."""
    model_family: str
    use_rock: bool = False
    include_structure_type: bool = False

    def __post_init__(self):
        if self.model_family not in MODEL_FAMILIES:
            raise ValueError(f'Unknown model family {self.model_family!r}, must be one of {MODEL_FAMILIES}')
        if (self.model_family == 'ann') & self.include_structure_type:
            raise ValueError('Neural network models do not support structure type as feature')

    @property
    def label(self):
        if self.model_family == 'ann':
            return 'annr' if self.use_rock else 'ann'
        label = 'rf2' if self.include_structure_type else 'rf1'
        return label + 'r' if self.use_rock else label

    @classmethod
    def from_label(cls, label):
        try:
            return MODEL_TYPES[label]
        except KeyError:
            raise ValueError(f'Unknown model type {label!r}, must be one of {list(MODEL_TYPES)}') from None


MODEL_TYPES = {
    'ann': ModelConfig('ann'),
    'annr': ModelConfig('ann', use_rock = True),
    'rf1': ModelConfig('rf'),
    'rf1r': ModelConfig('rf', use_rock = True),
    'rf2': ModelConfig('rf', include_structure_type = True),
    'rf2r': ModelConfig('rf', use_rock = True, include_structure_type = True),
}

_PRETTY_NAMES = {
    "Neural network (no rock)": "ann",
    "Neural network (with rock)": "annr",
    "RandomForest (no rock, no type)": "rf1",
    "RandomForest (with rock, no type)": "rf1r",
    "RandomForest (no rock, with type)": "rf2",
    "RandomForest (with rock, with type)": "rf2r",
}


def pretty_model_types(pretty = 'name'):
    """
    Nicer labels for model types.

    Input:
        pretty: if 'name' (default), keys are the pretty labels and values the model types,
            if 'value' the reverse.

    Return:
        dictionary
    """
    if pretty == 'name':
        return dict(_PRETTY_NAMES)
    if pretty == 'value':
        return {value: name for name, value in _PRETTY_NAMES.items()}
    raise ValueError(f"pretty must be 'name' or 'value', got {pretty!r}")


@dataclass(frozen = True)
class FittedModelReplicate:
    """
    One fitted bootstrap replicate.

    model_fit is the trained model handle (any object with a predict(X) method).
    scale_factors (lo, hi) of the scaled training target are required for neural networks.
    If log_target is True, the model was fitted on the natural log of Kfs.
    """
    sample_id: int
    config: ModelConfig
    model_fit: Any
    scale_factors: Optional[Tuple[float, float]] = None
    log_target: bool = False

    def __post_init__(self):
        if self.config.model_family == 'ann':
            if self.scale_factors is None:
                raise ValueError(f'Neural network replicate {self.sample_id} requires scale_factors')
            object.__setattr__(self, 'scale_factors', check_scale_factors(self.scale_factors))

    @property
    def model_type(self):
        return self.config.label


class NetworkAdapter:
    """Predicts Kfs with a neural network replicate fitted on a min-max scaled target."""

    def __init__(self, replicate, texture_tolerance = 1.0):
        self.replicate = replicate
        self.texture_tolerance = texture_tolerance

    def predict(self, data):
        X = encode_features(data, self.replicate.config, texture_tolerance = self.texture_tolerance)
        y = _call_model(self.replicate, X, partial(ann_predict, scale_factors = self.replicate.scale_factors))
        if self.replicate.log_target:
            y = np.exp(y)
        return y


class ForestAdapter:
    """Predicts Kfs with a random forest replicate (average over all trees)."""

    def __init__(self, replicate, texture_tolerance = 1.0):
        self.replicate = replicate
        self.texture_tolerance = texture_tolerance

    def predict(self, data):
        X = encode_features(data, self.replicate.config, texture_tolerance = self.texture_tolerance)
        y = _call_model(self.replicate, X, rf_predict)
        if self.replicate.log_target:
            y = np.exp(y)
        return y


_ADAPTERS = {
    'ann': NetworkAdapter,
    'rf': ForestAdapter,
}


def get_adapter(replicate, texture_tolerance = 1.0):
    """
    Returns the prediction adapter for the model family of a replicate.
    """
    return _ADAPTERS[replicate.config.model_family](replicate, texture_tolerance = texture_tolerance)


def _call_model(replicate, X, predict_fn):
    """
    Calls predict_fn(X, model_fit) and returns a flat float array with one value per row of X.
    Failures of the model handle are raised as PredictionError.
    """
    if X.shape[0] == 0:
        return np.zeros(0)
    try:
        y = np.asarray(predict_fn(X, replicate.model_fit), dtype = float).ravel()
    except UrbanKfsError:
        raise
    except Exception as e:
        raise PredictionError(f'Model {replicate.model_type} sample {replicate.sample_id} failed to predict: {e}') from e
    if y.shape[0] != X.shape[0]:
        raise PredictionError(f'Model {replicate.model_type} sample {replicate.sample_id} returned {y.shape[0]} predictions for {X.shape[0]} records')
    return y


def replicates_from_frame(df):
    """
    Converts replicate collection dataframe into list of FittedModelReplicate.

    Required columns are sample_id, model_type and model_fit,
    optional columns scale_factors (required for neural networks) and log_target.
    """
    missing = [name for name in ['sample_id', 'model_type', 'model_fit'] if name not in df.columns]
    if len(missing) > 0:
        raise ValidationError('Replicate collection is missing the following columns', missing)
    replicates = []
    problems = []
    for row in df.itertuples(index = False):
        scale_factors = getattr(row, 'scale_factors', None)
        log_target = getattr(row, 'log_target', False)
        try:
            replicates.append(FittedModelReplicate(
                sample_id = int(row.sample_id),
                config = ModelConfig.from_label(row.model_type),
                model_fit = row.model_fit,
                scale_factors = scale_factors if _is_pair(scale_factors) else None,
                log_target = bool(log_target) if pd.notna(log_target) else False))
        except ValueError as e:
            problems.append(str(e))
    if len(problems) > 0:
        raise ValidationError('Invalid replicate collection', problems)
    return replicates


def replicates_to_frame(replicates):
    """
    Converts list of FittedModelReplicate into replicate collection dataframe.
    """
    return pd.DataFrame([{
        'sample_id': r.sample_id,
        'model_type': r.model_type,
        'model_fit': r.model_fit,
        'scale_factors': r.scale_factors,
        'log_target': r.log_target} for r in replicates], columns = REPLICATE_COLUMNS)


def as_replicates(fitted_models):
    """
    Returns list of FittedModelReplicate for a replicate collection dataframe or a sequence of replicates.
    """
    if isinstance(fitted_models, pd.DataFrame):
        return replicates_from_frame(fitted_models)
    return list(fitted_models)


def _is_pair(value):
    return (value is not None) and (np.ndim(value) == 1) and (len(value) == 2)
