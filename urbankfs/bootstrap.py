"""
Bootstrapped prediction of soil hydraulic conductivity (Kfs).

Core functionality:
- fitting of bootstrap replicates for multiple model types (neural network, random forest)
- applying every fitted replicate to the same input data in one batch per replicate
- collecting predictions in a long-form table with one row per input record and replicate
- isolation of failing replicates: their rows are omitted and the failure is reported

Replicates are independent and share only read-only inputs, so predictions can run in parallel
on a thread pool (n_jobs > 1).

This package is part of the machine learning project for predicting hydraulic conductivity of urban soils.

Copyright 2023 Alexey Shiklomanov

This open-source software is released under the MIT License.
"""

import concurrent.futures
import warnings
from dataclasses import dataclass, field
from functools import partial
from typing import List

import numpy as np
import pandas as pd
from tqdm import tqdm

from .errors import PartialFailure, UrbanKfsError, ValidationError
from .model_ann import ann_train
from .model_rf import rf_train
from .models import FittedModelReplicate, ModelConfig, as_replicates, get_adapter, replicates_to_frame
from .preprocessing import (SOIL_COLUMNS, TARGET_COLUMN, LOG_TARGET_COLUMN,
    encode_features, feature_names, prepare_data)

print_info = False

# Columns added to the input data in the prediction table
PREDICTION_COLUMNS = ['sample_id', 'model_type', 'predicted']


@dataclass
class BootstrapPrediction:
    """
    Output of predict_bootstrap.

    predictions: long-form dataframe with input columns, sample_id, model_type and predicted
    failures: list of PartialFailure, one per replicate that failed
    """
    predictions: pd.DataFrame
    failures: List[PartialFailure] = field(default_factory = list)

    def failure_report(self):
        """Returns dataframe with one row per failed replicate."""
        return pd.DataFrame([{
            'sample_id': f.sample_id,
            'model_type': f.model_type,
            'error': type(f.cause).__name__,
            'message': str(f.cause)} for f in self.failures],
            columns = ['sample_id', 'model_type', 'error', 'message'])


def check_replicates(replicates):
    """
    Verifies that the replicate collection is not empty
    and that (sample_id, model_type) is unique.
    """
    if len(replicates) == 0:
        raise ValidationError('Replicate collection is empty')
    keys = pd.Series([(r.sample_id, r.model_type) for r in replicates])
    duplicated = keys[keys.duplicated()].unique().tolist()
    if len(duplicated) > 0:
        raise ValidationError('Duplicated (sample_id, model_type) in replicate collection', duplicated)


def check_columns(data, replicates, id_columns = None):
    """
    Verifies that data contains all columns required by every model configuration in the collection.
    All missing columns are reported together with the model types requiring them.
    """
    configs = list(dict.fromkeys(r.config for r in replicates))
    missing = {}
    for config in configs:
        for name in feature_names(config):
            if name not in data.columns:
                missing.setdefault(name, []).append(config.label)
    for name in (id_columns or []):
        if name not in data.columns:
            missing.setdefault(name, []).append('id_columns')
    if len(missing) > 0:
        raise ValidationError('Missing the following columns',
            [f"{name} (required by {', '.join(labels)})" for name, labels in missing.items()])


def predict_replicate(replicate, data, texture_tolerance = 1.0):
    """
    Predicts Kfs for all records in data with one replicate.

    Return:
        (predictions, None) on success, (None, PartialFailure) if encoding or prediction failed
    """
    try:
        y = get_adapter(replicate, texture_tolerance = texture_tolerance).predict(data)
    except UrbanKfsError as e:
        return None, PartialFailure(replicate.sample_id, replicate.model_type, e)
    return y, None


def predict_bootstrap(data, fitted_models, id_columns = None, n_jobs = 1, progress = False, texture_tolerance = 1.0):
    """
    Predict soil conductivity for a set of bootstrapped models.

    Every replicate is applied to the full input data in one batch.
    Replicates that fail are omitted from the predictions and listed in the failures.

    Input:
        data: dataframe with soil records, columns Percent_Sand, Percent_Silt, Percent_Clay,
            plus Percent_Rock_Fragment and Top_Type if required by any model type in fitted_models
        fitted_models: replicate collection dataframe (sample_id, model_type, model_fit, scale_factors, log_target)
            or list of FittedModelReplicate
        id_columns: list of additional columns of data to keep in the predictions (e.g. site id)
        n_jobs: number of worker threads, None or -1 for the default number of workers of the thread pool
        progress: if True, shows progress bar over replicates
        texture_tolerance: maximum deviation of sand + silt + clay from 100

    Return:
        BootstrapPrediction
    """
    replicates = as_replicates(fitted_models)
    check_replicates(replicates)
    id_columns = list(id_columns) if id_columns is not None else []
    check_columns(data, replicates, id_columns)

    keep_cols = list(dict.fromkeys(id_columns + [name for name in SOIL_COLUMNS if name in data.columns]))
    data_sub = data[keep_cols].reset_index(drop = True)

    predict_fn = partial(predict_replicate, data = data_sub, texture_tolerance = texture_tolerance)
    if n_jobs == 1:
        results = list(tqdm(map(predict_fn, replicates), total = len(replicates), disable = not progress))
    else:
        max_workers = None if (n_jobs is None) or (n_jobs < 1) else n_jobs
        with concurrent.futures.ThreadPoolExecutor(max_workers = max_workers) as executor:
            results = list(tqdm(executor.map(predict_fn, replicates), total = len(replicates), disable = not progress))

    frames = []
    failures = []
    for replicate, (y, failure) in zip(replicates, results):
        if failure is not None:
            warnings.warn(str(failure))
            failures.append(failure)
            continue
        df = data_sub.copy()
        df['sample_id'] = replicate.sample_id
        df['model_type'] = replicate.model_type
        df['predicted'] = y
        frames.append(df)
    if print_info:
        print(f'Predictions for {len(frames)} of {len(replicates)} replicates and {len(data_sub)} records')

    if len(frames) > 0:
        predictions = pd.concat(frames, ignore_index = True)
    else:
        predictions = pd.DataFrame(columns = keep_cols + PREDICTION_COLUMNS)
    return BootstrapPrediction(predictions, failures)


def fit_replicate(data, model_type, sample_id = 0, random_state = None):
    """
    Fits one model of given type to training data.

    Neural networks are fitted on the min-max scaled log of Kfs,
    random forests on Kfs in cm/hr.

    Input:
        data: training dataframe with Unsaturated_K2cm_cmhr and the features of the model type
        model_type: 'ann', 'annr', 'rf1', 'rf1r', 'rf2' or 'rf2r'
        sample_id: id of the bootstrap sample
        random_state: seed of the model fit

    Return:
        FittedModelReplicate
    """
    config = ModelConfig.from_label(model_type)
    sdata = prepare_data(data, use_rock = config.use_rock, top_type = config.include_structure_type)
    X = encode_features(sdata, config, texture_tolerance = None)
    if config.model_family == 'ann':
        model, scale_factors = ann_train(X, sdata[LOG_TARGET_COLUMN].values, random_state = random_state)
        return FittedModelReplicate(sample_id, config, model, scale_factors = scale_factors, log_target = True)
    model = rf_train(X, sdata[TARGET_COLUMN].values, random_state = random_state)
    return FittedModelReplicate(sample_id, config, model)


def fit_bootstrap(data, model_types = ('ann', 'rf1', 'rf2'), nsamples = 100, random_state = None, progress = False):
    """
    Fits models of all given types on nsamples bootstrap resamples of the training data.
    Each resample draws len(data) records with replacement and is shared by all model types.

    Input:
        data: training dataframe
        model_types: list of model types
        nsamples: number of bootstrap samples
        random_state: seed for resampling and model fits
        progress: if True, shows progress bar over bootstrap samples

    Return:
        replicate collection dataframe with columns sample_id, model_type, model_fit, scale_factors, log_target
    """
    for model_type in model_types:
        ModelConfig.from_label(model_type)
    data = data.reset_index(drop = True)
    rng = np.random.default_rng(random_state)
    replicates = []
    for sample_id in tqdm(range(1, nsamples + 1), disable = not progress):
        idx = rng.integers(0, len(data), size = len(data))
        boot = data.iloc[idx].reset_index(drop = True)
        for model_type in model_types:
            seed = int(rng.integers(0, 2**31 - 1))
            replicates.append(fit_replicate(boot, model_type, sample_id = sample_id, random_state = seed))
    return replicates_to_frame(replicates)
